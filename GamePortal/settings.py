"""
Django settings for GamePortal project.
"""

from pathlib import Path
import os
import dj_database_url
from dotenv import load_dotenv
from django.core.exceptions import ImproperlyConfigured

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(os.path.join(BASE_DIR, '.env'))

# 'production' switches on the hardening block at the bottom of this file
ENVIRONMENT = os.getenv('DJANGO_ENV', 'development')
IS_PRODUCTION = ENVIRONMENT == 'production'

SECRET_KEY = os.getenv('SECRET_KEY') or 'django-insecure-gameportal-development-key'
DEBUG = os.getenv('DEBUG', 'False') == 'True'

ALLOWED_HOSTS = os.getenv('ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',')
CSRF_TRUSTED_ORIGINS = [origin for origin in os.getenv('CSRF_TRUSTED_ORIGINS', '').split(',') if origin]

# --- SITE IDENTITY ---
# Seeds the default SEO settings document; the admin-managed document wins once saved.
SITE_URL = os.getenv('SITE_URL', 'https://67clickers.online')
SITE_NAME = os.getenv('SITE_NAME', '67 Clicker - Gaming Platform')
SERVICE_NAME = os.getenv('SERVICE_NAME', '67clicker')
SERVICE_VERSION = os.getenv('SERVICE_VERSION', '1.0.0')

# Application definition
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'django.contrib.sitemaps',

    'django_htmx',

    # Project Apps
    'content',
    'seo',
    'core',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    # Add whitenoise middleware right after SecurityMiddleware
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'django_htmx.middleware.HtmxMiddleware',
    'core.middleware.ContentCacheHeadersMiddleware',
]

ROOT_URLCONF = 'GamePortal.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [os.path.join(BASE_DIR, 'templates')],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
                'core.context_processors.site_content',
            ],
        },
    },
]

WSGI_APPLICATION = 'GamePortal.wsgi.application'


# Database
# Only auth/sessions (the admin gate) live here; site content is JSON on disk.
DATABASES = {
    'default': dj_database_url.config(
        default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}",
        conn_max_age=600,
        ssl_require=IS_PRODUCTION and bool(os.getenv('DATABASE_URL')),
    )
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    { 'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator', },
    { 'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator', },
    { 'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator', },
    { 'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator', },
]

# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True


# =======================================================
# STATIC & MEDIA FILES
# =======================================================

STATIC_URL = '/static/'
STATIC_ROOT = os.path.join(BASE_DIR, 'staticfiles')
STATICFILES_DIRS = [
    os.path.join(BASE_DIR, 'static'),
]
MEDIA_URL = '/uploads/'
MEDIA_ROOT = os.path.join(BASE_DIR, 'public', 'uploads')

STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
    },
}

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# =======================================================
# CONTENT STORE CONFIGURATION
# =======================================================

# One JSON document per file; filenames double as cache keys.
CONTENT_DATA_DIR = Path(os.getenv('CONTENT_DATA_DIR', BASE_DIR / 'data'))
CONTENT_UPLOADS_DIR = Path(os.getenv('CONTENT_UPLOADS_DIR', MEDIA_ROOT))

# Seconds a loaded document stays fresh (300s == 5 minutes)
CONTENT_CACHE_TTL = int(os.getenv('CONTENT_CACHE_TTL', '300'))

# Health probe reports memory as 'warning' above this resident size
HEALTH_MEMORY_WARNING_MB = int(os.getenv('HEALTH_MEMORY_WARNING_MB', '512'))


LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': ('%(asctime)s [%(levelname)s] [%(name)s:%(lineno)s] '
                        '%(message)s'),
            'datefmt': '%Y-%m-%d %H:%M:%S'
        },
    },
    'handlers': {
        'console': {
            'level': 'DEBUG',
            'class': 'logging.StreamHandler',
            'formatter': 'verbose'
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': True,
        },
        'django.template': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'content': {
            'handlers': ['console'],
            'level': os.getenv('CONTENT_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
}


# --- PRODUCTION SETTINGS ---
if IS_PRODUCTION:
    if not os.getenv('SECRET_KEY'):
        raise ImproperlyConfigured("SECRET_KEY is not set in the environment variables.")

    SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
    USE_X_FORWARDED_HOST = True
    SECURE_SSL_REDIRECT = True
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True
