"""
Submission Builder

Flattens a finalized deal into the deal_records row written on save.
"""

from .models import SPLIT_PERCENTAGE, FinalizeRequest, ProcessingContext
from .output import to_money


def build_submission_record(request: FinalizeRequest, ctx: ProcessingContext) -> dict:
    """
    Build the flat deal_records row.

    gross_profit is the house profit after the partner split but BEFORE
    sales commission. final_net_after_payouts is never written.
    Add-on rows lose their in-form addon_id.
    """
    inputs = ctx.inputs
    b = ctx.breakdown
    shared = inputs.is_shared_capital

    return {
        "application_id": request.application_id,
        "vehicle_id": request.vehicle.vehicle_id if request.vehicle else None,
        "sales_rep_name": request.sales_rep_name,
        "sales_rep_commission": to_money(ctx.commission.commission_amount),
        "sales_rep_commission_percent": to_money(inputs.sales_rep_commission_percent),
        # Pre-discount price; the discount is stored alongside it
        "sold_price": to_money(inputs.selling_price),
        "discount_amount": to_money(inputs.discount_amount),
        "sold_mileage": request.handover.sold_mileage,
        "next_service_date": request.handover.next_service_date,
        "next_service_km": request.handover.next_service_km,
        "delivery_address": request.delivery.address,
        "delivery_date": request.delivery.scheduled_at,
        "aftersales_expenses": [e.to_record() for e in inputs.aftersales_expenses],
        "cost_price": to_money(inputs.cost_price),
        "recon_cost": to_money(b.total_recon_cost),
        "additional_deal_costs": to_money(inputs.additional_deal_costs),
        "gross_profit": to_money(ctx.partner.lumina_net_profit),
        "is_shared_capital": shared,
        "partner_split_type": inputs.partner_split_type,
        "partner_split_value": to_money(inputs.partner_split_value) if shared else 0.0,
        "partner_split_percent": (
            to_money(inputs.partner_split_value)
            if shared and inputs.partner_split_type == SPLIT_PERCENTAGE
            else 0.0
        ),
        "partner_profit_amount": to_money(ctx.partner.partner_payout),
        "partner_capital_contribution": to_money(inputs.partner_capital_contribution) if shared else 0.0,
        "dealer_deposit_contribution": to_money(inputs.dealer_deposit_contribution),
        "external_admin_fee": to_money(inputs.external_admin_fee),
        "bank_initiation_fee": to_money(inputs.bank_initiation_fee),
        "client_deposit": to_money(inputs.client_deposit),
        "total_financed_amount": to_money(b.total_finance_amount),
        "dic_amount": to_money(inputs.dic_amount),
        "referral_income_amount": to_money(inputs.referral_income_amount),
        "referral_commission_amount": to_money(inputs.referral_commission_amount),
        "referral_person_name": inputs.referral_person_name,
        "addons_data": [a.to_record() for a in inputs.addons],
    }
