from flask import Blueprint, current_app, jsonify, request

from flexdice.services.game.errors import GameError

rooms = Blueprint('rooms', __name__)


def _controller():
    return current_app.extensions['flexdice']


@rooms.errorhandler(GameError)
def handle_game_error(exc):
    return jsonify({'error': exc.message, 'code': exc.code}), exc.status_code


@rooms.route('', methods=['GET'])
def list_rooms():
    return jsonify(_controller().list_rooms())


@rooms.route('', methods=['POST'])
def create_room():
    data = request.get_json(silent=True) or {}
    names = _controller().create_room(data.get('name'))
    return jsonify({'message': 'Room created', 'rooms': names}), 201


@rooms.route('/<string:name>', methods=['DELETE'])
def remove_room(name):
    names = _controller().remove_room(name)
    return jsonify({'message': 'Room removed', 'rooms': names})


@rooms.route('/<string:name>/state', methods=['GET'])
def get_room_state(name):
    return jsonify(_controller().snapshot(name))


@rooms.route('/<string:name>/messages', methods=['GET'])
def get_room_messages(name):
    return jsonify(_controller().messages(name))
