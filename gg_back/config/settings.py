import environ
import os
from pathlib import Path
from datetime import timedelta
from .base import * # 공통 설정
from corsheaders.defaults import default_headers
from dotenv import load_dotenv
load_dotenv()


# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# env 초기화 (.env 파일에서 환경변수 로드)
env = environ.Env()
environ.Env.read_env(os.path.join(BASE_DIR, '.env'))


SECRET_KEY = env('SECRET_KEY', default=SECRET_KEY)
DEBUG = env.bool('DEBUG', default=False)

# ALLOWED_HOSTS 설정
# 운영 환경에서는 .env에서 ALLOWED_HOSTS를 명시적으로 설정하세요
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["127.0.0.1", "localhost", "testserver"])


ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]


# Database
# DATABASE_URL 미설정 시 로컬 SQLite 사용
DATABASES = {
    'default': env.db('DATABASE_URL', default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
}


STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "static"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# SimpleJWT 설정 (관리자 메뉴 관리 API용)
SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME" : timedelta(minutes=30),
    "REFRESH_TOKEN_LIFETIME" : timedelta(days=1),
    "AUTH_HEADER_TYPES" : ("Bearer",),
}

# CORS 옵션
CORS_ALLOW_ALL_ORIGINS = False
CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS", default=[
    "http://localhost:5173",   # Vite 개발 서버
    "http://127.0.0.1:5173",   # Vite 개발 서버
    "http://localhost:8080",
])

# 헤더 허용 (Authorization 등) : default_headers(기본 헤더) +  Authorization 추가
CORS_ALLOW_HEADERS = list(default_headers) + [
    "authorization",
]
CORS_ALLOW_CREDENTIALS = True


# Swagger 설정
REST_FRAMEWORK = {
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.AllowAny",
    ),
    "DEFAULT_FILTER_BACKENDS": [
        "django_filters.rest_framework.DjangoFilterBackend",
    ],
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "EXCEPTION_HANDLER": "utils.exception_handlers.custom_exception_handler",
}

SPECTACULAR_SETTINGS = {
    "TITLE": "GG Community API",
    "DESCRIPTION": "Member community backend (menus, simple member sessions)",
    "VERSION": "1.0.0",
    "USE_SESSION_AUTH": False,
    "SERVE_INCLUDE_SCHEMA": False,  # 문서 로드시 자동 호출 방지
    "SECURITY_SCHEMES": {
        "bearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        },
    },
}

# ==================================================
# Redis / Channels
# ==================================================
USE_REDIS = env.bool("USE_REDIS", default=USE_REDIS)
REDIS_HOST = env("REDIS_HOST", default=REDIS_HOST)
REDIS_PORT = env.int("REDIS_PORT", default=REDIS_PORT)

if USE_REDIS:
    CHANNEL_LAYERS = {
        "default": {
            "BACKEND": "channels_redis.core.RedisChannelLayer",
            "CONFIG": {
                "hosts": [(REDIS_HOST, REDIS_PORT)],
            },
        }
    }

# ==================================================
# 회원 세션 슬롯 / 메뉴 트리
# ==================================================
MEMBER_SESSION_KEY = env("MEMBER_SESSION_KEY", default=MEMBER_SESSION_KEY)
MEMBER_SESSION_SLOT = env("MEMBER_SESSION_SLOT", default="redis" if USE_REDIS else "memory")

# drop: 부모를 찾을 수 없는 메뉴는 제외 / promote: 루트로 승격
MENU_ORPHAN_POLICY = env("MENU_ORPHAN_POLICY", default=MENU_ORPHAN_POLICY)
# last_write_wins: 나중에 끝난 요청이 덮어씀 / latest_request_wins: 최신 요청 결과만 반영
MENU_STALE_FETCH_POLICY = env("MENU_STALE_FETCH_POLICY", default=MENU_STALE_FETCH_POLICY)

# ==================================================
# Logging
# ==================================================
LOG_LEVEL = env("LOG_LEVEL", default="INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "[{asctime}] {levelname} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "access": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "apps": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "utils": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
}
