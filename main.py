from flask import Flask, request, jsonify
from flask_cors import CORS
from fi_engine import DealEngine
import os
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Enable CORS for all routes (the dashboard front end calls from another origin)
CORS(app)

# Initialize the deal engine
engine = DealEngine()


@app.route("/api", methods=["GET"])
def api_info():
    """API information endpoint"""
    return jsonify({
        "status": "ok",
        "message": "F&I Deal Financial Engine API",
        "version": "1.0",
        "endpoints": {
            "process_deals": "/process_deals [POST]",
            "health": "/health [GET]"
        }
    }), 200


@app.route("/health", methods=["GET"])
def health():
    """Health check for monitoring"""
    return jsonify({"status": "healthy"}), 200


@app.route("/process_deals", methods=["POST"])
def process_deals():
    """
    Run an aggregation pass over the posted deals
    """
    try:
        # Get input data
        input_data = request.get_json(force=True, silent=True)

        if not input_data:
            return jsonify({
                "error": "No input data provided",
                "status": "failed"
            }), 400

        # Log request
        deals = input_data.get("deals") if isinstance(input_data, dict) else None
        deal_count = len(deals) if isinstance(deals, list) else 0
        logger.info(f"Processing {deal_count} deals")

        # Process through engine
        result = engine.process_from_dict(input_data)

        logger.info(f"Deals processed successfully: {deal_count}")

        return jsonify(result), 200

    except ValueError as e:
        # Validation errors from engine
        logger.error(f"Validation error: {str(e)}")
        return jsonify({
            "error": str(e),
            "status": "validation_failed"
        }), 400

    except Exception as e:
        # Unexpected errors
        logger.error(f"Processing error: {str(e)}", exc_info=True)
        return jsonify({
            "error": "An unexpected error occurred during processing",
            "status": "failed"
        }), 500


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=False)
