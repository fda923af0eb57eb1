"""Game domain services for Left-Right-Center rooms.

Seating and turn order, dice resolution and room bookkeeping are plain
Python over ``GameSession`` and have no Flask or Socket.IO imports. The
``SessionController`` ties them to a store and a transport, which HTTP routes
and socket handlers reach through ``current_app.extensions['flexdice']``.
"""
