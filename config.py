"""
Runtime configuration, read from the environment once at import.
"""
import os

HOST = os.getenv('HOST', '0.0.0.0')
PORT = int(os.getenv('PORT', '8080'))
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

# Comma separated, '*' allows any origin
CORS_ORIGINS = [origin.strip() for origin in os.getenv('CORS_ORIGINS', '*').split(',') if origin.strip()]

MAX_UPLOAD_BYTES = int(os.getenv('MAX_UPLOAD_BYTES', str(16 * 1024 * 1024)))  # 16MB
ALLOWED_EXTENSIONS = {'csv'}


def allowed_file(filename: str) -> bool:
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS
