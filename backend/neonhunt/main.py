from flask import Blueprint, current_app, jsonify, send_from_directory

from neonhunt.storage import LocalPhotoStorage, get_photo_storage

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Neon Hunters game server!'})

@main.route('/photos/<path:photo_path>')
def serve_photo(photo_path):
    storage = get_photo_storage()
    if not isinstance(storage, LocalPhotoStorage):
        return jsonify({'error': 'Photos are served by the configured bucket'}), 404
    current_app.logger.debug(f"[photo] serve path={photo_path}")
    return send_from_directory(storage.root, photo_path)
