import logging
from datetime import datetime
from flask import Flask, request, jsonify
from flask_cors import CORS

# Import configuration and processing functions
from config import (
    API_HOST, API_PORT, API_DEBUG, API_VERSION, LOG_LEVEL,
    MIN_REQUEST_TEXT_LENGTH, PAGE_TEXT_MAX_WORDS,
)
from ai_processor import LegalDocumentAnalyzer
from capabilities import CapabilityName
from detector import classify, quick_check, detect_document_type, extract_page_text
from errors import CapabilityUnavailableError, InputTooShortError

# Setup logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

# --- FLASK APP SETUP ---
app = Flask(__name__)
CORS(app)  # Cross-Origin Resource Sharing configuration for page and panel clients

analyzer = LegalDocumentAnalyzer()

logger.info("Flask application initialized")


def _dump(model):
    return model.model_dump(mode="json", by_alias=True)


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# --- API ENDPOINTS ---

@app.route('/ping', methods=['GET'])
def ping():
    """
    Health check endpoint to verify the server is running.
    Returns server status and timestamp.
    """
    return jsonify({
        "status": "ok",
        "message": "Legal Document Analyzer API is running",
        "timestamp": datetime.now().isoformat(),
        "version": API_VERSION
    }), 200


@app.route('/detect', methods=['POST'])
def detect_legal_page():
    """
    Runs the full multi-factor classifier on a page.
    """
    data = _json_body()
    url = data.get('url') or ''
    title = data.get('title') or ''
    headings = data.get('headings')
    if not isinstance(headings, list):
        headings = None

    # Raw page text from a content script is reduced to headings plus leading body words
    content = data.get('content')
    if not content and data.get('bodyText'):
        content = extract_page_text(headings, data.get('bodyText'), max_words=PAGE_TEXT_MAX_WORDS)
    content = content or ''

    result = classify(url, title, content, headings=headings)
    logger.info(f"Detection result for {url}: confidence={result.confidence}, legal={result.is_legal}")

    response = {"success": True, **_dump(result)}
    if result.is_legal:
        response["documentType"] = detect_document_type(url, title, content)
    return jsonify(response), 200


@app.route('/check', methods=['POST'])
def check_page():
    """
    Quick URL/title check used before extracting page content.
    """
    data = _json_body()
    is_likely = quick_check(data.get('url') or '', data.get('title') or '')
    return jsonify({"success": True, "isLegalPage": is_likely}), 200


@app.route('/analyze', methods=['POST'])
async def analyze_text():
    """
    Analyzes already-extracted document text and returns the analysis record.
    """
    data = _json_body()
    text = data.get('text') or ''

    if not isinstance(text, str):
        return jsonify({"success": False, "error": "'text' must be a string"}), 400

    if len(text) < MIN_REQUEST_TEXT_LENGTH:
        return jsonify({
            "success": False,
            "error": f"Text is too short to analyze (minimum {MIN_REQUEST_TEXT_LENGTH} characters)"
        }), 400

    source = data.get('source')
    logger.info(f"Analyzing text ({len(text)} characters, source: {source})")

    try:
        analysis = await analyzer.analyze(
            text,
            output_language=data.get('outputLanguage'),
            source=source,
            document_type=data.get('documentType'),
            file_name=data.get('fileName'),
        )
    except InputTooShortError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except CapabilityUnavailableError as e:
        logger.error(f"Analysis unavailable: {e.hint}")
        return jsonify({"success": False, "error": str(e), "hint": e.hint}), 503

    return jsonify({"success": True, "analysis": _dump(analysis)}), 200


@app.route('/simplify', methods=['POST'])
async def simplify_text():
    """
    Rewrites a legal passage in plain language.
    """
    data = _json_body()
    text = data.get('text')
    if not text or not isinstance(text, str):
        return jsonify({"success": False, "error": "Missing 'text' in request body"}), 400

    simplified = await analyzer.simplify_jargon(text, output_language=data.get('outputLanguage'))
    return jsonify({"success": True, "simplified": simplified}), 200


@app.route('/status', methods=['GET'])
async def api_status():
    """
    Reports the readiness of every capability plus an overall assessment.
    """
    statuses = await analyzer.readiness.probe_all()
    overall = await analyzer.readiness.get_overall_status(statuses)
    return jsonify({
        "success": True,
        "capabilities": {name: _dump(status) for name, status in statuses.items()},
        "overall": _dump(overall),
    }), 200


@app.route('/prepare', methods=['POST'])
async def prepare_model():
    """
    Prepares (downloads) the model behind a capability.
    Progress updates are collected and returned with the result.
    """
    data = _json_body()
    api = str(data.get('api') or '').lower()
    try:
        capability = CapabilityName(api)
    except ValueError:
        return jsonify({"success": False, "error": f"Unknown capability: '{api}'"}), 400

    progress = []
    result = await analyzer.readiness.prepare(
        capability,
        on_progress=lambda update: progress.append(_dump(update)),
        output_language=data.get('outputLanguage') or analyzer.output_language,
    )
    status = await analyzer.readiness.probe(capability)
    return jsonify({
        "success": True,
        "result": _dump(result),
        "progress": progress,
        "status": _dump(status),
    }), 200


@app.route('/cleanup', methods=['POST'])
async def cleanup_sessions():
    """
    Releases all pooled capability sessions.
    """
    await analyzer.release_all_sessions()
    return jsonify({"success": True}), 200


# --- RUN THE APP ---
if __name__ == '__main__':
    # Application server configuration
    logger.info(f"Starting Legal Document Analyzer API on {API_HOST}:{API_PORT}")
    app.run(host=API_HOST, port=API_PORT, debug=API_DEBUG)
