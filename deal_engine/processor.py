"""
Deal Processor - Main Orchestrator

Coordinates the deal economics pipeline through discrete, testable steps.
"""

import logging
from datetime import date
from typing import Any, Dict

from .calculators import CommissionResolver, MetalLogicCalculator, PartnerSplitResolver, ProfitCalculator
from .config import Settings
from .models import DealInputs, DealRecord, DealResult, FinalizeOutcome, FinalizeRequest, ProcessingContext
from .output import OutputBuilder, to_money
from .partner_report import PartnerReportRenderer
from .store import DealRecordStore
from .submission import build_submission_record
from .validators import InputValidator, SubmissionValidator

logger = logging.getLogger(__name__)


class DealProcessor:
    """
    Main orchestrator for deal processing.

    Deal Builder pipeline:
    1. Validate Input
    2. Build Context
    3. Calculate Profit
    4. Resolve Partner Split
    5. Resolve Commission
    6. Build Output

    Partner Payout Reporter:
    1. Read persisted record
    2. Metal Logic breakdown
    3. Render report
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self.validator = InputValidator()
        self.submission_validator = SubmissionValidator()
        self.profit_calculator = ProfitCalculator()
        self.partner_resolver = PartnerSplitResolver()
        self.commission_resolver = CommissionResolver()
        self.metal_logic_calculator = MetalLogicCalculator()
        self.output_builder = OutputBuilder(self.settings.currency_symbol)
        self.report_renderer = PartnerReportRenderer(
            self.settings.currency_symbol, self.settings.dealership_name
        )

    def run(self, inputs: DealInputs) -> ProcessingContext:
        """Run the calculation steps and return the populated context."""
        # Step 1: Validate
        self.validator.validate(inputs)

        # Step 2: Build context
        ctx = ProcessingContext(inputs=inputs)

        # Step 3: Profit
        ctx.breakdown = self.profit_calculator.calculate(inputs)

        # Step 4: Partner split
        ctx.partner = self.partner_resolver.resolve(
            ctx.breakdown.gross_profit,
            inputs.is_shared_capital,
            inputs.partner_split_type,
            inputs.partner_split_value,
        )

        # Step 5: Commission
        ctx.commission = self.commission_resolver.resolve(
            ctx.partner.lumina_net_profit, inputs.sales_rep_commission_percent
        )
        return ctx

    def process(self, inputs: DealInputs) -> DealResult:
        """
        Process a deal through the complete pipeline.

        Args:
            inputs: DealInputs value

        Returns:
            DealResult with every breakdown line and the figures saved on submit
        """
        ctx = self.run(inputs)

        # Step 6: Build output
        return self.output_builder.build(ctx)

    def process_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Process a deal from raw dictionary input.

        Convenience method for API usage.
        """
        return self.process_to_dict(DealInputs.from_dict(data))

    def process_to_dict(self, inputs: DealInputs) -> Dict[str, Any]:
        return self._result_to_dict(self.process(inputs))

    def build_submission(self, request: FinalizeRequest) -> dict:
        """Compute the deal and flatten it into the record written on save."""
        return build_submission_record(request, self.run(request.inputs))

    def finalize(self, request: FinalizeRequest, store: DealRecordStore) -> FinalizeOutcome:
        """
        Validate, compute and save a deal in one write.

        Missing submission data blocks the save and is reported, not raised.
        DealPersistenceError from the store propagates to the caller.
        """
        issues = self.submission_validator.check(request)
        if issues:
            logger.info(f"Deal submission blocked: {'; '.join(issues)}")
            return FinalizeOutcome(status="blocked", issues=issues)

        record = self.build_submission(request)
        saved = store.save(record, deal_id=request.deal_id)

        sourced_updated = None
        if request.vehicle.is_sourcing and not request.deal_id:
            sourced_updated = store.increment_sourced_count(request.vehicle.vehicle_id)

        logger.info(
            f"Deal finalized for vehicle {request.vehicle.vehicle_id}: "
            f"gross_profit={record['gross_profit']}"
        )
        return FinalizeOutcome(status="saved", record=saved or record, sourced_count_updated=sourced_updated)

    def partner_report(self, record_data: Dict[str, Any], today: date | None = None) -> Dict[str, Any]:
        """Build the Metal Logic partner settlement for a persisted deal."""
        record = DealRecord.from_dict(record_data)
        breakdown = self.metal_logic_calculator.calculate(record)
        report = self.report_renderer.build(record, breakdown, today=today)
        report["breakdown"] = {name: to_money(value) for name, value in vars(breakdown).items()}
        report["text"] = self.report_renderer.render_text(report)
        logger.info(f"Partner report built for deal {record.reference or 'unsaved'}")
        return report

    def _result_to_dict(self, result: DealResult) -> Dict[str, Any]:
        """Convert DealResult to dictionary for API response."""
        return {
            "deal_summary": result.deal_summary,
            "calculations": result.calculations,
            "persisted_figures": result.persisted_figures,
        }


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def process_deal_from_dict(input_data: Dict[str, Any]) -> Dict[str, Any]:
    """Process deal inputs from a Python dict and return a Python dict."""
    processor = DealProcessor()
    return processor.process_from_dict(input_data)


def process_deal_from_json(json_input: str) -> str:
    """
    Process deal inputs from a JSON string and return a JSON string.
    """
    import json

    try:
        input_data = json.loads(json_input)
        processor = DealProcessor()
        result = processor.process_from_dict(input_data)
        return json.dumps(result, indent=2)

    except ValueError as e:
        error_response = {"error": str(e), "status": "validation_failed"}
        return json.dumps(error_response, indent=2)
