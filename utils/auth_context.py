from collections import namedtuple

from flask import current_app, g, request

# Identity is established upstream; this service only reads who is calling.
Actor = namedtuple("Actor", ["id", "role"])

def load_current_actor():
    actor_id = (request.headers.get(current_app.config.get("ACTOR_ID_HEADER", "X-Actor-Id")) or "").strip()
    role = (request.headers.get(current_app.config.get("ACTOR_ROLE_HEADER", "X-Actor-Role")) or "").strip().upper()
    if not actor_id:
        g.actor = None
        return
    g.actor = Actor(id=actor_id[:64], role=role or None)

