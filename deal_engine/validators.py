"""
Input Validation for the Deal Economics Engine

InputValidator guards the calculator against structurally broken input and
raises ValueError. SubmissionValidator checks whether a deal is complete
enough to save and reports problems instead of raising.
"""

from .models import SPLIT_TYPES, DealInputs, FinalizeRequest


class InputValidator:
    """Validates deal inputs before calculation. Raises ValueError."""

    def validate(self, inputs: DealInputs) -> None:
        if inputs.partner_split_type not in SPLIT_TYPES:
            raise ValueError(
                f"Invalid partner_split_type: {inputs.partner_split_type}. Must be 'percentage' or 'fixed'"
            )

        addon_ids = [a.addon_id for a in inputs.addons]
        if len(addon_ids) != len(set(addon_ids)):
            raise ValueError(f"Add-on ids must be unique, got: {addon_ids}")


class SubmissionValidator:
    """Checks a finalize request for anything that must block saving."""

    def check(self, request: FinalizeRequest) -> list[str]:
        """Return a list of issues; empty means the deal can be saved."""
        issues = []

        if request.vehicle is None:
            issues.append("No vehicle assigned to this deal")

        if not request.sales_rep_name:
            issues.append("Select a sales rep")

        if not request.delivery.address:
            issues.append("Enter a delivery address")

        if not request.delivery.date:
            issues.append("Enter a delivery date")

        if request.inputs.additional_deal_costs < 0:
            issues.append(
                f"Additional deal costs cannot be negative, got: {request.inputs.additional_deal_costs}"
            )

        return issues
