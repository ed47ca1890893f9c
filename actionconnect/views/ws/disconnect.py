from __future__ import annotations

import logging

from flask import request

from ...realtime import get_realtime


def handle_disconnect(*_args):
    try:
        connection = get_realtime().registry.disconnect(request.sid)
        if connection is None:
            logging.debug("disconnect: sid=%s already released", request.sid)
    except Exception:
        logging.exception("disconnect handler error")
