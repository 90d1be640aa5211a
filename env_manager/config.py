import os

# --- Flask App Configuration ---
SECRET_KEY = os.environ.get('SECRET_KEY', 'sqlite_link_manager_secret_key')  # Signs the session cookie
SESSION_LIFETIME = 3600  # 1 hour

# --- Login Credentials ---
LOGIN_USERNAME = os.environ.get('LOGIN_USERNAME', 'sqlite')
LOGIN_PASSWORD = os.environ.get('LOGIN_PASSWORD', 'sqliteadmin')

# --- Database Configuration ---
DATA_DIR = os.environ.get('DATA_DIR', './data')
DB_PATH = os.environ.get('DB_PATH') or os.path.join(DATA_DIR, 'env_vars.db')

# --- Server Configuration ---
HOST = os.environ.get('HOST', '0.0.0.0')
PORT = int(os.environ.get('PORT', 35643))
