from datetime import date
import logging
import os

from flask import Flask, current_app, jsonify, request
from flask_cors import CORS

from deal_engine import DealProcessor
from deal_engine.backend import BackendClient, BackendError
from deal_engine.config import Settings
from deal_engine.ledger import LedgerCostLoader
from deal_engine.models import FinalizeRequest
from deal_engine.store import DealNotFoundError, DealPersistenceError, DealRecordStore
from deal_engine.summary import summarize_deals

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Enable CORS for all routes (the admin front end calls this API from the browser)
CORS(app)

settings = Settings.from_env()
processor = DealProcessor(settings)


def get_backend() -> BackendClient | None:
    """Backend client for this app, or None when the backend is not configured."""
    client = current_app.config.get("BACKEND_CLIENT")
    if client is None and settings.backend_enabled:
        try:
            client = BackendClient(settings)
        except BackendError as e:
            logger.error(f"Backend client unavailable: {str(e)}")
            return None
        current_app.config["BACKEND_CLIENT"] = client
    return client


def _json_body():
    data = request.get_json(force=True, silent=True)
    if not data:
        return None
    return data


@app.route("/api", methods=["GET"])
def api_info():
    """API information endpoint"""
    return jsonify({
        "status": "ok",
        "message": "Deal Economics API",
        "version": "1.0",
        "endpoints": {
            "deal_breakdown": "/deal_breakdown [POST]",
            "partner_report": "/partner_report [POST]",
            "stored_partner_report": "/deals/<deal_id>/partner_report [GET]",
            "finalize_deal": "/finalize_deal [POST]",
            "vehicle_ledger": "/vehicles/<vehicle_id>/ledger [GET]",
            "report_summary": "/reports/summary [GET]",
            "health": "/health [GET]"
        }
    }), 200


@app.route("/health", methods=["GET"])
def health():
    """Health check for monitoring"""
    return jsonify({"status": "healthy", "environment": settings.environment}), 200


@app.route("/deal_breakdown", methods=["POST"])
def deal_breakdown():
    """
    Live Deal Builder breakdown for a set of deal inputs
    """
    try:
        input_data = _json_body()
        if input_data is None:
            return jsonify({"error": "No input data provided", "status": "failed"}), 400

        result = processor.process_from_dict(input_data)
        return jsonify(result), 200

    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Validation error: {str(e)}")
        return jsonify({"error": str(e), "status": "validation_failed"}), 400

    except Exception as e:
        logger.error(f"Processing error: {str(e)}", exc_info=True)
        return jsonify({"error": "An unexpected error occurred during processing", "status": "failed"}), 500


@app.route("/partner_report", methods=["POST"])
def partner_report():
    """
    Partner payout (Metal Logic) report for a persisted deal record
    """
    try:
        record = _json_body()
        if record is None:
            return jsonify({"error": "No input data provided", "status": "failed"}), 400

        return jsonify(processor.partner_report(record)), 200

    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Validation error: {str(e)}")
        return jsonify({"error": str(e), "status": "validation_failed"}), 400

    except Exception as e:
        logger.error(f"Report error: {str(e)}", exc_info=True)
        return jsonify({"error": "An unexpected error occurred during processing", "status": "failed"}), 500


@app.route("/deals/<deal_id>/partner_report", methods=["GET"])
def stored_partner_report(deal_id):
    """Partner payout report for a deal loaded from the backend"""
    backend = get_backend()
    if backend is None:
        return jsonify({"error": "Deal storage is not configured", "status": "failed"}), 503

    try:
        record = DealRecordStore(backend).load(deal_id)
        return jsonify(processor.partner_report(record)), 200
    except DealNotFoundError as e:
        return jsonify({"error": str(e), "status": "failed"}), 404
    except DealPersistenceError as e:
        return jsonify({"error": str(e), "status": "failed"}), 502
    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Stored deal {deal_id} could not be reported: {str(e)}")
        return jsonify({"error": str(e), "status": "validation_failed"}), 400
    except Exception as e:
        logger.error(f"Report error for deal {deal_id}: {str(e)}", exc_info=True)
        return jsonify({"error": "An unexpected error occurred during processing", "status": "failed"}), 500


@app.route("/finalize_deal", methods=["POST"])
def finalize_deal():
    """
    Validate, compute and save a finalized deal
    """
    backend = get_backend()
    if backend is None:
        return jsonify({"error": "Deal storage is not configured", "status": "failed"}), 503

    try:
        input_data = _json_body()
        if input_data is None:
            return jsonify({"error": "No input data provided", "status": "failed"}), 400

        finalize_request = FinalizeRequest.from_dict(input_data)
        outcome = processor.finalize(finalize_request, DealRecordStore(backend))

    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Validation error: {str(e)}")
        return jsonify({"error": str(e), "status": "validation_failed"}), 400

    except DealPersistenceError:
        # The client keeps its form state and can resubmit
        return jsonify({"error": "Failed to save deal record", "status": "failed"}), 502

    except Exception as e:
        logger.error(f"Finalize error: {str(e)}", exc_info=True)
        return jsonify({"error": "An unexpected error occurred during processing", "status": "failed"}), 500

    if not outcome.saved:
        return jsonify({"status": "blocked", "issues": outcome.issues}), 422

    return jsonify({
        "status": "saved",
        "record": outcome.record,
        "sourced_count_updated": outcome.sourced_count_updated
    }), 200


@app.route("/vehicles/<vehicle_id>/ledger", methods=["GET"])
def vehicle_ledger(vehicle_id):
    """Ledger costs for a vehicle. Degrades to zero, never fails."""
    summary = LedgerCostLoader(get_backend()).fetch(vehicle_id)
    return jsonify({
        "vehicle_id": vehicle_id,
        "total": float(summary.total),
        "degraded": summary.degraded,
        "expenses": [
            {"amount": float(e.amount), "category": e.category, "description": e.description}
            for e in summary.expenses
        ]
    }), 200


@app.route("/reports/summary", methods=["GET"])
def report_summary():
    """Profit, revenue, cost and payout totals for deals in a date range"""
    backend = get_backend()
    if backend is None:
        return jsonify({"error": "Deal storage is not configured", "status": "failed"}), 503

    try:
        start = request.args.get("from")
        end = request.args.get("to")
        records = DealRecordStore(backend).list_deals()
        summary = summarize_deals(
            records,
            start=date.fromisoformat(start) if start else None,
            end=date.fromisoformat(end) if end else None,
        )
    except ValueError as e:
        return jsonify({"error": str(e), "status": "validation_failed"}), 400
    except DealPersistenceError as e:
        return jsonify({"error": str(e), "status": "failed"}), 502

    return jsonify(summary.to_dict()), 200


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=False)
