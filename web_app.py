#!/usr/bin/env python3
"""
ExitBetter questionnaire API - JSON endpoints over the guidance engine.

Endpoints:
- GET  /api/health           snapshot summary
- POST /api/questions        resolved, ordered question tree
- POST /api/applicable       applicable question ids for an answer snapshot
- POST /api/completion       completion stats for one form
- POST /api/recommendations  tasks and tips for a user
- POST /api/validate         save-time validation for a company config

Run:
    python3 web_app.py

Then call: http://localhost:5001/api/health
"""

import logging
import os
import sys
from pathlib import Path

from flask import Flask, jsonify, request

# Add project to path
sys.path.insert(0, str(Path(__file__).parent))

from exitbetter.catalog.registry import CatalogSnapshot
from exitbetter.config import EngineConfig, configure_logging
from exitbetter.dates import parse_date
from exitbetter.errors import ExitBetterError, UnknownCompanyError
from exitbetter.pipeline import QuestionnaireService
from exitbetter.schemas.company_config import CompanyConfig
from exitbetter.schemas.questions import FormType

logger = logging.getLogger(__name__)

config = EngineConfig.from_env()
configure_logging(config.log_level)

app = Flask(__name__)

# Loaded on first request
_service = None


def get_service() -> QuestionnaireService:
    global _service
    if _service is None:
        _service = QuestionnaireService(CatalogSnapshot.load(config.snapshot_path), config)
    return _service


def _payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    return data


def _form_type(data):
    raw = data.get('formType', FormType.ASSESSMENT.value)
    try:
        return FormType(raw)
    except ValueError:
        return None


@app.errorhandler(UnknownCompanyError)
def unknown_company(e):
    return jsonify({'error': str(e)}), 404


@app.errorhandler(ExitBetterError)
def engine_error(e):
    return jsonify({'error': str(e)}), 400


@app.route('/api/health', methods=['GET'])
def health():
    snapshot = get_service().snapshot
    return jsonify({
        'status': 'ok',
        'source': snapshot.source,
        'companies': sorted(snapshot.company_configs),
        'rules': len(snapshot.guidance_rules),
    })


@app.route('/api/questions', methods=['POST'])
def questions():
    data = _payload()
    if data is None:
        return jsonify({'error': 'Request body must be JSON'}), 400
    company = data.get('company')
    if not company:
        return jsonify({'error': 'No company provided'}), 400
    form_type = _form_type(data)
    if form_type is None:
        return jsonify({'error': 'Invalid formType'}), 400
    viewer = data.get('viewer', 'end_user')
    if viewer not in ('end_user', 'editor'):
        return jsonify({'error': 'Invalid viewer'}), 400

    tree = get_service().question_tree(
        company,
        data.get('projectId'),
        form_type,
        viewer_is_end_user=viewer == 'end_user',
    )
    return jsonify({'questions': [q.to_dict() for q in tree]})


@app.route('/api/applicable', methods=['POST'])
def applicable():
    data = _payload()
    if data is None:
        return jsonify({'error': 'Request body must be JSON'}), 400
    company = data.get('company')
    if not company:
        return jsonify({'error': 'No company provided'}), 400
    form_type = _form_type(data)
    if form_type is None:
        return jsonify({'error': 'Invalid formType'}), 400

    questions = get_service().applicable(
        company,
        data.get('projectId'),
        form_type,
        data.get('answers') or {},
        data.get('crossFormAnswers') or {},
    )
    return jsonify({'questionIds': [q.id for q in questions]})


@app.route('/api/completion', methods=['POST'])
def completion():
    data = _payload()
    if data is None:
        return jsonify({'error': 'Request body must be JSON'}), 400
    company = data.get('company')
    if not company:
        return jsonify({'error': 'No company provided'}), 400
    form_type = _form_type(data)
    if form_type is None:
        return jsonify({'error': 'Invalid formType'}), 400

    stats = get_service().completion(
        company,
        data.get('projectId'),
        form_type,
        data.get('answers') or {},
        data.get('crossFormAnswers') or {},
    )
    return jsonify(stats.to_dict())


@app.route('/api/recommendations', methods=['POST'])
def recommendations():
    data = _payload()
    if data is None:
        return jsonify({'error': 'Request body must be JSON'}), 400
    company = data.get('company')
    if not company:
        return jsonify({'error': 'No company provided'}), 400

    today = None
    if data.get('today'):
        today = parse_date(data['today'])
        if today is None:
            return jsonify({'error': 'Invalid today date'}), 400

    recs = get_service().recommendations(
        company,
        data.get('projectId'),
        data.get('profile') or {},
        data.get('assessment') or {},
        today=today,
    )
    return jsonify(recs.to_dict())


@app.route('/api/validate', methods=['POST'])
def validate():
    data = _payload()
    if data is None:
        return jsonify({'error': 'Request body must be JSON'}), 400
    company = data.get('company', '')
    raw_config = data.get('config')
    if raw_config is not None and not isinstance(raw_config, dict):
        return jsonify({'error': 'config must be an object'}), 400
    if raw_config is None and not company:
        return jsonify({'error': 'No company or config provided'}), 400

    company_config = CompanyConfig.from_dict(raw_config) if raw_config is not None else None
    issues = get_service().validate(company, company_config)
    return jsonify({'valid': not issues, 'issues': [i.to_dict() for i in issues]})


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5001))
    print(f"""
╔═══════════════════════════════════════════════════════════════╗
║     EXITBETTER QUESTIONNAIRE API                              ║
╠═══════════════════════════════════════════════════════════════╣
║  Snapshot: {Path(config.snapshot_path).name:<51}║
╚═══════════════════════════════════════════════════════════════╝

Open your browser to: http://localhost:{port}/api/health

Press Ctrl+C to stop the server.
    """)

    app.run(debug=True, host='0.0.0.0', port=port)
