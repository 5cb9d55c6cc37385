# backend/app.py
import io
import base64
import logging
import uuid
from pathlib import Path

from flask import Flask, abort, request, send_file, send_from_directory, jsonify, current_app
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from config import load_settings
from plant_analyzer import PlantAnalyzer, UpstreamTimeout
from report_generator import build_report_bytes, ReportDeliveryError

logger = logging.getLogger(__name__)

REPORT_ERROR = "An error occurred while generating the PDF report"
DOWNLOAD_ERROR = "Error downloading the PDF report"


def create_app(analyzer=None, **overrides):
    settings = load_settings(overrides)
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = Flask(__name__, static_folder=str(settings.STATIC_DIR), static_url_path="")
    app.config["SETTINGS"] = settings
    # report requests carry the image as a data URL, about 4/3 of the upload size
    app.config["MAX_CONTENT_LENGTH"] = settings.max_report_length
    app.extensions["plant_analyzer"] = analyzer
    CORS(app)

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.route("/", methods=["GET"])
    def index():
        return send_from_directory(app.static_folder, "index.html")

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"}), 200

    @app.route("/analyze", methods=["POST"])
    def analyze():
        if request.content_length is not None and request.content_length > settings.max_content_length:
            abort(413)
        file = request.files.get("image")
        if not file or file.filename == "":
            return jsonify({"error": "Please upload image"}), 400

        mime_type = file.mimetype or "application/octet-stream"
        upload_path = None
        try:
            upload_path = _save_upload(file, settings.UPLOAD_DIR)
            image_bytes = upload_path.read_bytes()
            image_data = base64.b64encode(image_bytes).decode("ascii")
            plant_info = _get_analyzer().analyze(image_bytes, mime_type)
            upload_path.unlink()
            upload_path = None
        except UpstreamTimeout as e:
            logger.warning("Analysis timed out: %s", e)
            return jsonify({"error": str(e)}), 504
        except Exception as e:
            logger.exception("Analysis failed for %s upload", mime_type)
            return jsonify({"error": str(e)}), 500
        finally:
            if upload_path is not None:
                _remove_upload(upload_path)

        return jsonify({"result": plant_info, "image": f"data:{mime_type};base64,{image_data}"})

    @app.route("/download", methods=["POST"])
    def download():
        payload = request.get_json(silent=True) or {}
        result = payload.get("result") if isinstance(payload, dict) else None
        image = payload.get("image") if isinstance(payload, dict) else None

        try:
            pdf_bytes, filename = build_report_bytes(settings.REPORTS_DIR, result, image or None)
        except ReportDeliveryError:
            logger.exception("Error sending PDF report")
            return jsonify({"error": DOWNLOAD_ERROR}), 500
        except Exception:
            logger.exception("Error generating PDF report")
            return jsonify({"error": REPORT_ERROR}), 500

        return send_file(
            io.BytesIO(pdf_bytes),
            mimetype="application/pdf",
            as_attachment=True,
            download_name=filename,
        )

    logger.info("Plant analysis API ready (model=%s, uploads=%s, reports=%s)",
                settings.GEMINI_MODEL, settings.UPLOAD_DIR, settings.REPORTS_DIR)
    return app


def _get_analyzer():
    analyzer = current_app.extensions.get("plant_analyzer")
    if analyzer is None:
        analyzer = PlantAnalyzer.from_settings(current_app.config["SETTINGS"])
        current_app.extensions["plant_analyzer"] = analyzer
    return analyzer


def _save_upload(file, upload_dir: Path) -> Path:
    upload_dir.mkdir(parents=True, exist_ok=True)
    path = upload_dir / uuid.uuid4().hex
    file.save(str(path))
    return path


def _remove_upload(path: Path):
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove upload %s", path, exc_info=True)


app = create_app()

if __name__ == "__main__":
    # Run local dev server
    s = app.config["SETTINGS"]
    app.run(host=s.HOST, port=s.PORT, debug=True)
