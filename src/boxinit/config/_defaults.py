"""Built-in configuration defaults.

``BASE_CONFIG`` is merged under every configuration file. ``DEFAULT_CONFIG``
additionally declares the stock PHP web container (php-fpm behind nginx)
and is used only when no configuration file exists.
"""

from typing import Any

from ._loader import deep_merge

BASE_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "logging": {
        "level": "info",
        "format": "json",
    },
    "supervisor": {
        "grace_period": 10.0,
        "stop_on_fatal": True,
    },
    "bootstrap": [],
    "services": {},
}

_WEB_ROOT = "/var/www/html"

DEFAULT_CONFIG: dict[str, Any] = deep_merge(  # pyright: ignore[reportExplicitAny]
    BASE_CONFIG,
    {
        "bootstrap": [
            {
                "name": "web-root-owner",
                "kind": "ownership",
                "path": _WEB_ROOT,
                "owner": "www-data",
                "group": "www-data",
            },
            {
                "name": "web-root-mode",
                "kind": "mode",
                "path": _WEB_ROOT,
                "mode": "755",
            },
            {
                "name": "default-index",
                "kind": "file",
                "path": f"{_WEB_ROOT}/index.php",
                "content": "<?php phpinfo(); ?>\n",
                "mode": "755",
                "owner": "www-data",
                "group": "www-data",
            },
            {
                "name": "php-run-dir",
                "kind": "directory",
                "path": "/run/php",
                "owner": "root",
                "group": "root",
            },
            {
                "name": "nginx-log-dir",
                "kind": "directory",
                "path": "/var/log/nginx",
                "owner": "root",
                "group": "root",
            },
            {
                "name": "nginx-config",
                "kind": "check",
                "command": ["nginx", "-t"],
            },
        ],
        "services": {
            "php-fpm": {
                "command": ["php-fpm", "--nodaemonize"],
                "ready_pattern": "ready to handle connections",
                "restart": {"mode": "always"},
            },
            "nginx": {
                "command": ["nginx", "-g", "daemon off;"],
                "depends_on": ["php-fpm"],
                "restart": {"mode": "always"},
            },
        },
    },
)
