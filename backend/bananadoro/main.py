from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Pomodoro Timer Server'})


@main.route('/health')
def health():
    engine = current_app.extensions['bananadoro']
    return jsonify({'status': 'ok', 'sessions': engine.session_count()})


@main.route('/api/sessions/<string:session_code>', methods=['GET'])
def get_session_state(session_code):
    """Read-only snapshot of a session; never creates one or touches reaping."""
    state = current_app.extensions['bananadoro'].snapshot(session_code)
    if state is None:
        return jsonify({'error': 'Session not found'}), 404
    return jsonify(state)
