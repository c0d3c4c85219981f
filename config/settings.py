from pathlib import Path

import os, json
from django.core.exceptions import ImproperlyConfigured

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# secret_key setting
secret_file = os.path.join(BASE_DIR, 'secrets.json')

if os.path.exists(secret_file):
    with open(secret_file) as f:
        secrets = json.loads(f.read())
else:
    secrets = {}

_MISSING = object()

def get_secret(setting, default=_MISSING, secrets=secrets):
    # environment first, then secrets.json, then the default
    value = os.getenv(setting)
    if value is not None:
        return value
    try:
        return secrets[setting]
    except KeyError:
        if default is not _MISSING:
            return default
        error_msg = "Set the {} environment variable".format(setting)
        raise ImproperlyConfigured(error_msg)

def get_bool(setting, default=False):
    value = get_secret(setting, default)
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


ENV = os.getenv('ENV', 'local')  # 'local' by default

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = get_bool("DEBUG", ENV == 'local')

SECRET_KEY = get_secret("SECRET_KEY", "django-insecure-local-only" if ENV == 'local' else _MISSING)

ALLOWED_HOSTS = [h.strip() for h in get_secret("ALLOWED_HOSTS", "127.0.0.1,localhost,testserver").split(",") if h.strip()]


# Application definition

DJANGO_APPS = [
    'django.contrib.staticfiles',
]

PROJECT_APPS = [
    'blobstore',
    'ai',
    'orders',
]

THIRD_PARTY_APPS = [
    "corsheaders",
    'rest_framework',
]

INSTALLED_APPS = DJANGO_APPS + PROJECT_APPS + THIRD_PARTY_APPS

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'

# Database
# Orders live in blob storage, there is no relational database.
DATABASES = {}


# Internationalization
# https://docs.djangoproject.com/en/5.2/topics/i18n/

LANGUAGE_CODE = 'en-us'

TIME_ZONE = 'UTC'

USE_I18N = True

USE_TZ = True


# Static files (CSS, JavaScript, Images)
# https://docs.djangoproject.com/en/5.2/howto/static-files/

STATIC_URL = 'static/'

# Uploaded order photos are read fully into memory
DATA_UPLOAD_MAX_MEMORY_SIZE = int(get_secret("DATA_UPLOAD_MAX_MEMORY_SIZE", 20 * 1024 * 1024))
FILE_UPLOAD_MAX_MEMORY_SIZE = DATA_UPLOAD_MAX_MEMORY_SIZE

CORS_ALLOW_CREDENTIALS = True

CORS_ALLOWED_ORIGINS = [o.strip() for o in get_secret("CORS_ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",") if o.strip()]

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'UNAUTHENTICATED_USER': None,
    'EXCEPTION_HANDLER': 'config.responses.api_exception_handler',
}

# Blob storage (Cloudflare R2 or any S3-compatible endpoint)
AWS_ACCESS_KEY_ID = get_secret("AWS_ACCESS_KEY_ID", "")
AWS_SECRET_ACCESS_KEY = get_secret("AWS_SECRET_ACCESS_KEY", "")
AWS_REGION = get_secret("AWS_REGION", "auto")
AWS_S3_ENDPOINT_URL = get_secret("AWS_S3_ENDPOINT_URL", None)
AWS_STORAGE_BUCKET_NAME = get_secret("AWS_STORAGE_BUCKET_NAME", "order-ingest")

# Document keys
ORDERS_DATA_KEY = "orders/orders_data.json"
ORDERS_SEQUENCE_KEY = "orders/sequences.json"
CONFIG_KEY = "system/config.json"
IMAGE_PREFIX = "images/"

# ETag-guarded writes, off by default (last writer wins)
BLOB_CONDITIONAL_WRITES = get_bool("BLOB_CONDITIONAL_WRITES", False)
BLOB_WRITE_RETRIES = int(get_secret("BLOB_WRITE_RETRIES", 3))

# Outbound AI call timeout in seconds
AI_REQUEST_TIMEOUT = float(get_secret("AI_REQUEST_TIMEOUT", 60))

LOG_LEVEL = get_secret("LOG_LEVEL", "INFO")

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '[{asctime}] {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'blobstore': {'handlers': ['console'], 'level': LOG_LEVEL},
        'ai': {'handlers': ['console'], 'level': LOG_LEVEL},
        'orders': {'handlers': ['console'], 'level': LOG_LEVEL},
    },
}
