from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the trivia elimination server!'})

@main.route('/api/rooms')
def list_rooms():
    """Read-only summary of every live room."""
    return jsonify(current_app.extensions['trivia'].snapshot())
