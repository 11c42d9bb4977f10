"""
Environment-driven configuration.

Values are read from the process environment (or a local ``.env`` file) and
consumed by ``bakery.config.settings``.
"""
from pathlib import Path
from urllib.parse import unquote, urlsplit

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DB_ENGINES = {
    'sqlite': 'django.db.backends.sqlite3',
    'postgres': 'django.db.backends.postgresql',
    'postgresql': 'django.db.backends.postgresql',
}


class Environment(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    database_url: str = 'sqlite:///db.sqlite3'
    jwt_secret: str = 'dev-insecure-jwt-secret-change-me'
    secret_key: str = ''
    debug: bool = False
    allowed_hosts: str = '*'
    redis_url: str = ''
    log_level: str = 'INFO'
    access_token_days: int = 7
    refresh_token_days: int = 30
    notification_sender: str = 'bakery.notifications.senders.LogSender'

    @field_validator('database_url')
    @classmethod
    def check_scheme(cls, value):
        scheme = urlsplit(value).scheme
        if scheme not in DB_ENGINES:
            raise ValueError(f'Unsupported database scheme: {scheme or value!r}')
        return value

    @property
    def host_list(self):
        return [host.strip() for host in self.allowed_hosts.split(',') if host.strip()]


def database_config(url, base_dir):
    """Translate a ``DATABASE_URL`` into a Django ``DATABASES['default']`` dict."""
    parts = urlsplit(url)
    engine = DB_ENGINES[parts.scheme]

    if engine == 'django.db.backends.sqlite3':
        name = unquote(parts.path[1:]) if parts.path.startswith('/') else unquote(parts.path)
        if not name or name == ':memory:':
            name = ':memory:'
        elif not Path(name).is_absolute():
            name = str(Path(base_dir) / name)
        return {'ENGINE': engine, 'NAME': name}

    return {
        'ENGINE': engine,
        'NAME': unquote(parts.path.lstrip('/')),
        'USER': unquote(parts.username or ''),
        'PASSWORD': unquote(parts.password or ''),
        'HOST': parts.hostname or '',
        'PORT': str(parts.port or ''),
        'CONN_MAX_AGE': 60,
    }
