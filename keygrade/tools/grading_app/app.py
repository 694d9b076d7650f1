"""Flask web application: the local grading workspace behind the desktop window."""

import logging
import threading
from functools import wraps
from typing import Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from keygrade.libs.settings_store import API_KEY_SETTING, GRADING_PROMPT_SETTING, SettingsStore
from keygrade.tools.answer_key_grading.session import GradingSession

LOG = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)

# Global session and settings store instances
session: Optional[GradingSession] = None
store: Optional[SettingsStore] = None

# At most one grading call in flight; held while grading or replacing records
session_lock = threading.Lock()


def create_app(grading_session: GradingSession, settings_store: SettingsStore):
    """
    Create and configure the Flask app.

    Args:
        grading_session: GradingSession the endpoints operate on
        settings_store: Persistent store for the API key and grading prompt
    """
    global session, store
    session = grading_session
    store = settings_store

    LOG.info("Flask app created and configured")
    return app


def _record_payload(index: int):
    record = session.get_record(index)
    payload = record.to_dict()
    payload['index'] = index
    payload['summary'] = session.summarize(record)
    return payload


def _error(message: str, status: int):
    return jsonify({'success': False, 'error': message}), status


def exclusive(view):
    """Run the view under session_lock, answering 409 if grading is already running."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not session_lock.acquire(blocking=False):
            LOG.info(f"Rejecting {request.path}: grading in progress")
            return _error('Grading already in progress', 409)
        try:
            return view(*args, **kwargs)
        finally:
            session_lock.release()
    return wrapper


@app.errorhandler(IndexError)
def handle_missing_record(e):
    return _error(str(e), 404)


@app.errorhandler(ValueError)
def handle_bad_request(e):
    return _error(str(e), 400)


@app.route('/')
def index():
    """Session overview."""
    return jsonify({
        'success': True,
        'has_answer_key': bool(session.answer_key.strip()),
        'submission_count': len(session.records),
        'current_index': session.current_index,
        'graded_count': sum(1 for r in session.records if r.result is not None),
    })


@app.route('/api/settings', methods=['GET'])
def get_settings():
    return jsonify({
        'success': True,
        'has_api_key': bool(store.get(API_KEY_SETTING)),
        'grading_prompt': session.grader.grading_prompt,
        'pass_threshold': session.pass_threshold,
    })


@app.route('/api/settings', methods=['PUT'])
@exclusive
def update_settings():
    """Update the API key, grading prompt and/or pass threshold."""
    updates = request.get_json(silent=True) or {}

    if 'api_key' in updates:
        store.save_api_key(updates['api_key'])
    if 'grading_prompt' in updates:
        prompt = (updates['grading_prompt'] or "").strip()
        if prompt:
            store.set(GRADING_PROMPT_SETTING, prompt)
        else:
            # A blank prompt resets to the built-in one
            store.delete(GRADING_PROMPT_SETTING)
        session.grader.grading_prompt = prompt
    if 'pass_threshold' in updates:
        session.set_pass_threshold(updates['pass_threshold'])

    return get_settings()


@app.route('/api/answer-key', methods=['GET'])
def get_answer_key():
    return jsonify({'success': True, 'answer_key': session.answer_key})


@app.route('/api/answer-key', methods=['POST', 'PUT'])
@exclusive
def set_answer_key():
    """Upload an answer key file, or set its text directly."""
    upload = request.files.get('file')
    if upload is not None:
        session.load_answer_key_bytes(upload.filename, upload.read())
    else:
        data = request.get_json(silent=True) or {}
        session.set_answer_key(data.get('text', ''))
    return get_answer_key()


@app.route('/api/submissions', methods=['GET'])
def get_submissions():
    return jsonify({
        'success': True,
        'current_index': session.current_index,
        'submissions': [_record_payload(i) for i in range(len(session.records))],
    })


@app.route('/api/submissions', methods=['POST'])
@exclusive
def upload_submissions():
    """Replace the batch with the records from one uploaded file."""
    upload = request.files.get('file')
    if upload is None:
        return _error('No file uploaded', 400)
    session.upload_submission_bytes(upload.filename, upload.read())
    return get_submissions()


@app.route('/api/submissions/paste', methods=['POST'])
@exclusive
def paste_submission():
    data = request.get_json(silent=True) or {}
    session.add_pasted(data.get('content', ''))
    return jsonify({'success': True, 'submission': _record_payload(session.current_index)})


@app.route('/api/submissions/<int:index>', methods=['GET'])
def get_submission(index: int):
    return jsonify({'success': True, 'submission': _record_payload(index)})


@app.route('/api/submissions/<int:index>', methods=['PUT'])
@exclusive
def edit_submission(index: int):
    """Replace a submission's text; clears its grading."""
    data = request.get_json(silent=True) or {}
    if 'content' not in data:
        return _error('Missing content', 400)
    session.edit_content(index, data['content'])
    return jsonify({'success': True, 'submission': _record_payload(index)})


@app.route('/api/navigate', methods=['POST'])
def navigate():
    data = request.get_json(silent=True) or {}
    try:
        delta = int(data.get('delta') or 0)
    except (TypeError, ValueError):
        return _error('delta must be an integer', 400)
    session.navigate(delta)
    return jsonify({'success': True, 'current_index': session.current_index})


@app.route('/api/submissions/<int:index>/grade', methods=['POST'])
@exclusive
def grade_submission(index: int):
    session.grade_one(index)
    return jsonify({'success': True, 'submission': _record_payload(index)})


@app.route('/api/grade/current', methods=['POST'])
@exclusive
def grade_current():
    session.grade_current()
    return jsonify({'success': True, 'submission': _record_payload(session.current_index)})


@app.route('/api/grade/all', methods=['POST'])
@exclusive
def grade_all():
    session.grade_all()
    return get_submissions()


@app.route('/api/export', methods=['GET'])
def export_results():
    """Download all records as grading_results.csv."""
    if not session.records:
        return _error('No submissions to export', 400)
    return Response(
        session.export_csv_text(),
        mimetype='text/csv',
        headers={'Content-Disposition': 'attachment; filename=grading_results.csv'},
    )


def run_server(host='127.0.0.1', port=5000, debug=False):
    """
    Run the Flask development server.

    Args:
        host: Host to bind to
        port: Port to bind to
        debug: Whether to run in debug mode
    """
    app.run(host=host, port=port, debug=debug)
