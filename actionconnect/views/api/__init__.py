from __future__ import annotations

from flask import Flask

from .channels import channels_bp
from .messages import messages_bp
from .users import users_bp

__all__ = ["channels_bp", "messages_bp", "users_bp", "register_blueprints"]


def register_blueprints(app: Flask) -> None:
    app.register_blueprint(users_bp)
    app.register_blueprint(channels_bp)
    app.register_blueprint(messages_bp)
