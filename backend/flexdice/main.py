from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Flex-Dice game server!'})


@main.route('/health')
def health():
    rooms = current_app.extensions['flexdice'].list_rooms()
    return jsonify({'status': 'ok', 'rooms': len(rooms)})
