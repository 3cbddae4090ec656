"""
Chloride - Client core for a multi-service file hosting platform
================================================================

Session, file catalog, admin and short-link logic shared by every front end
of the platform. Talks to four backend services over HTTP: an auth service
(signup), a control-plane API (login, roles, plans), a read service
(listings, short-code resolution) and a write service (uploads).

Modules:
    api: Service routing and the file catalog, admin and redirect clients
    core: Configuration constants, credential storage, session management
    models: Pydantic schemas and the error taxonomy
    utils: Logging, HTTP logging, formatting and feedback helpers
    app: Client bootstrap and the ClientState container

Usage:
    >>> from chloride.app.bootstrap import initialize_client
    >>> state = initialize_client()
    >>> session = await state.sessions.authenticate("user@example.com", "secret1")
    >>> files = await state.catalog.recent_files(session)
"""

__version__ = "0.1.0"
