import os
import secrets
import platform
import tempfile
from dotenv import load_dotenv

# Load environment variables from .env file(s)
# 1) Project root .env
load_dotenv()

basedir = os.path.abspath(os.path.dirname(__file__))


def ensure_data_directory(data_dir=None):
    """Ensure data directory exists with proper permissions for both Docker and standalone (cross-platform)"""
    data_dir = data_dir or os.environ.get('DATA_DIR') or os.path.join(basedir, 'data')

    os.makedirs(data_dir, exist_ok=True)

    # Flask-Session files and staged uploads live next to each other
    sessions_dir = os.path.join(data_dir, 'flask_sessions')
    uploads_dir = os.path.join(data_dir, 'uploads')
    os.makedirs(sessions_dir, exist_ok=True)
    os.makedirs(uploads_dir, exist_ok=True)

    # Only set Unix permissions on non-Windows systems
    if platform.system() != "Windows":
        try:
            # 755 = rwxr-xr-x
            os.chmod(data_dir, 0o755)
            os.chmod(sessions_dir, 0o755)
            os.chmod(uploads_dir, 0o755)
        except (OSError, PermissionError):
            # Ignore permission errors (common on some systems)
            pass

    return data_dir


data_dir = ensure_data_directory()

# 2) Overlay data/.env so settings saved at runtime persist via the mounted volume
data_env_path = os.path.join(data_dir, '.env')
if os.path.exists(data_env_path):
    load_dotenv(dotenv_path=data_env_path, override=True)


def _env_flag(name, default='false'):
    return os.environ.get(name, default).lower() in ['true', 'on', '1']


def _default_api_base_url():
    # Local backend during development, hosted backend everywhere else
    if _env_flag('FLASK_DEBUG') or os.environ.get('FLASK_ENV') == 'development':
        return 'http://localhost:5001'
    return 'https://efile-legal.onrender.com'


class Config:
    # Expose data directory path for other modules
    DATA_DIR = data_dir
    # Security
    SECRET_KEY = os.environ.get('SECRET_KEY')
    if not SECRET_KEY:
        # In production, always set SECRET_KEY environment variable
        if os.environ.get('FLASK_ENV') == 'development' or os.environ.get('FLASK_DEBUG'):
            SECRET_KEY = secrets.token_hex(32)
            print("⚠️  WARNING: Using temporary SECRET_KEY for development. Set SECRET_KEY in .env for production!")
        else:
            # All Gunicorn workers must share the same key or sessions and CSRF tokens break.
            raise ValueError("No SECRET_KEY set for Flask application. Please set it in your .env file.")

    # CSRF Settings
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = 3600  # 1 hour
    WTF_CSRF_SSL_STRICT = False  # Allow CSRF over HTTP for development

    # Session settings
    SESSION_COOKIE_SECURE = False  # Set to True only in production with HTTPS
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_PERMANENT = False
    PERMANENT_SESSION_LIFETIME = 86400  # 24 hours (when session.permanent = True)

    # Flask-Session Configuration
    SESSION_TYPE = os.environ.get('SESSION_TYPE', 'filesystem')
    SESSION_USE_SIGNER = True
    SESSION_KEY_PREFIX = 'efile:'
    SESSION_FILE_DIR = os.path.join(data_dir, 'flask_sessions')
    SESSION_FILE_THRESHOLD = 500  # Maximum number of sessions to store

    # Backend REST API
    API_BASE_URL = os.environ.get('API_BASE_URL') or _default_api_base_url()
    API_TIMEOUT = int(os.environ.get('API_TIMEOUT', 15))

    # Settings console
    SETTINGS_POLL_INTERVAL = int(os.environ.get('SETTINGS_POLL_INTERVAL', 30))  # seconds
    # Comma separated section keys, e.g. "PROFILE,DATABASE,ROLES". Unset keeps the built-in flags.
    SETTINGS_SECTIONS_ENABLED = os.environ.get('SETTINGS_SECTIONS_ENABLED')

    # Document uploads
    UPLOAD_MAX_FILE_SIZE = int(os.environ.get('UPLOAD_MAX_FILE_SIZE', 10 * 1024 * 1024))  # 10MB per document
    UPLOAD_ALLOWED_EXTENSIONS = ('pdf', 'png', 'jpg', 'jpeg', 'doc', 'docx')
    UPLOAD_FOLDER = os.path.join(data_dir, 'uploads')
    MAX_CONTENT_LENGTH = 50 * 1024 * 1024  # 50MB max request body

    # Application settings
    SITE_NAME = os.environ.get('SITE_NAME', 'eFile Legal')
    TIMEZONE = os.environ.get('TIMEZONE') or 'UTC'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'ERROR')

    # Authentication settings
    REMEMBER_COOKIE_DURATION = 86400 * 7  # 7 days
    REMEMBER_COOKIE_SECURE = os.environ.get('FLASK_DEBUG', 'false').lower() == 'false'
    REMEMBER_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_SAMESITE = 'Lax'


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    WTF_CSRF_ENABLED = False
    DATA_DIR = tempfile.mkdtemp(prefix='efile-test-')
    SESSION_FILE_DIR = os.path.join(DATA_DIR, 'flask_sessions')
    UPLOAD_FOLDER = os.path.join(DATA_DIR, 'uploads')
    API_BASE_URL = 'http://backend.test'
    API_TIMEOUT = 2
    LOG_LEVEL = 'DEBUG'
