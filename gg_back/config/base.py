import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

# Redis 설정 (환경변수 우선)
REDIS_HOST = os.environ.get('REDIS_HOST', '127.0.0.1')
REDIS_PORT = int(os.environ.get('REDIS_PORT', 6379))
USE_REDIS = os.environ.get('USE_REDIS', 'False').lower() in ('true', '1', 'yes')

# SECRET_KEY: 환경변수 우선, 없으면 개발용 기본값 사용
SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-do-not-use-in-production')
DEBUG = os.environ.get('DEBUG', 'False').lower() in ('true', '1', 'yes')

ALLOWED_HOSTS = []

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    'django_filters',
    'rest_framework',
    'corsheaders',
    'channels',
    'drf_spectacular',
    'apps.menus',
    'apps.members',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'utils.middleware.access_log.AccessLogMiddleware',
]

CORS_ALLOW_ALL_ORIGINS = True

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

AUTH_PASSWORD_VALIDATORS = []

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_TZ = True

STATIC_URL = '/static/'
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework_simplejwt.authentication.JWTAuthentication',
    ),
    'EXCEPTION_HANDLER': 'utils.exception_handlers.custom_exception_handler',
}

ASGI_APPLICATION = "config.asgi.application"

# Redis가 없는 개발/테스트 환경에서는 InMemory 레이어 사용
if USE_REDIS:
    CHANNEL_LAYERS = {
        "default" : {
            "BACKEND" : "channels_redis.core.RedisChannelLayer",
            "CONFIG" : {
                "hosts" : [(REDIS_HOST, REDIS_PORT)],
            }
        }
    }
else:
    CHANNEL_LAYERS = {
        "default" : {
            "BACKEND" : "channels.layers.InMemoryChannelLayer",
        }
    }

# 회원 세션 슬롯 / 메뉴 트리 정책 기본값
MEMBER_SESSION_KEY = 'gg_member'
MEMBER_SESSION_SLOT = 'redis' if USE_REDIS else 'memory'
MENU_ORPHAN_POLICY = 'drop'
MENU_STALE_FETCH_POLICY = 'last_write_wins'
