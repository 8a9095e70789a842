"""
AI service routes: image upload and description.

POST /upload takes one multipart file under the 'image' field, asks the
configured describer for a paragraph about it, and records upload and
AI-call counters.
"""

import logging
from typing import Optional, Tuple

from flask import Blueprint, Response, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from backend.ai_service.client import Described, ImageDescriber
from backend.metrics_service.registry import FAIL, SUCCESS

IMAGE_FIELD = "image"
NO_FILE_MESSAGE = "no file uploaded"
FALLBACK_DESCRIPTION = "No AI-generated description could be obtained for this image."


def fallback_description(reason: Optional[str] = None) -> str:
    """Explanatory text returned when the model produced nothing usable."""
    if reason:
        return f"{FALLBACK_DESCRIPTION} Reason: {reason}."
    return FALLBACK_DESCRIPTION


def create_upload_blueprint(describer: ImageDescriber, metrics, prompt: str) -> Blueprint:
    """
    Build the upload blueprint around its collaborators.

    Args:
        describer (ImageDescriber): Model client used for every upload.
        metrics: UploadMetrics or NullMetrics receiving the counters.
        prompt (str): Fixed instruction sent with every image.

    Returns:
        Blueprint: Exposes POST /upload.
    """
    upload_bp = Blueprint("upload", __name__)

    @upload_bp.errorhandler(RequestEntityTooLarge)
    def upload_too_large(error: RequestEntityTooLarge) -> Tuple[Response, int]:
        logging.warning(f"[Upload] Rejected upload larger than the configured limit: {error}")
        metrics.record_upload(FAIL)
        return jsonify({"success": False, "error": "file too large"}), 413

    @upload_bp.route("/upload", methods=["POST"])
    def upload_image() -> Tuple[Response, int]:
        """
        Describe one uploaded image.

        Expects:
        - multipart field 'image' (any MIME type)

        Returns:
            200: {success: true, description}. Also used when the model
                 returned no candidate (fallback text).
            400: {message: "no file uploaded"}.
            413: Upload above MAX_UPLOAD_MB.
            500: {success: false, error}. The model call raised.
        """
        logging.info("[Upload] POST /upload received.")

        image = request.files.get(IMAGE_FIELD)
        if image is None or not image.filename:
            logging.warning("[Upload] No file was uploaded.")
            metrics.record_upload(FAIL)
            return jsonify({"message": NO_FILE_MESSAGE}), 400

        image_bytes = image.read()
        mime_type = image.mimetype or "application/octet-stream"
        logging.info(
            f"[Upload] File received: {image.filename}, type: {mime_type}, "
            f"size: {len(image_bytes)} bytes."
        )

        try:
            result = describer.describe(prompt, image_bytes, mime_type)
        except Exception as e:
            logging.error(f"[Upload] AI generation failed: {e}")
            metrics.record_upload(FAIL)
            metrics.record_ai_call(FAIL)
            return jsonify({"success": False, "error": f"AI generation error: {e}"}), 500

        metrics.record_upload(SUCCESS)
        if isinstance(result, Described):
            metrics.record_ai_call(SUCCESS)
            description = result.text
        else:
            logging.warning(f"[Upload] Model returned no usable description (reason: {result.reason}).")
            metrics.record_ai_call(FAIL)
            description = fallback_description(result.reason)

        return jsonify({"success": True, "description": description}), 200

    return upload_bp
