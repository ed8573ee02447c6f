from datetime import datetime

from flask import Blueprint, current_app, jsonify

from storage import COLLECTION_KEYS

health_bp = Blueprint('health', __name__)


@health_bp.route('/health')
def health_check():
    """Health check endpoint for external monitoring"""
    office = current_app.extensions['school_office']
    try:
        counts = {key: len(office.repository.load_collection(key)) for key in COLLECTION_KEYS}
    except Exception:
        current_app.logger.exception("Health check could not read the store")
        return jsonify({'status': 'error', 'message': 'Store unavailable'}), 503

    return jsonify({
        'status': 'ok',
        'service': 'littlepalms-school-office',
        'collections': counts,
        'timestamp': datetime.utcnow().isoformat() + 'Z',
    })
