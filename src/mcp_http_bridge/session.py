"""Session id lifecycle for the single upstream session served by a bridge process."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    """The session token issued by the upstream server, if any."""

    session_id: str | None = None

    @property
    def initialized(self) -> bool:
        return self.session_id is not None


class SessionManager:
    """Owns the only writes to a `SessionState`.

    All reads and writes happen between suspension points of the event loop, so
    the header set built for an attempt always sees a consistent state.
    """

    def __init__(self, state: SessionState | None = None) -> None:
        self.state = state or SessionState()

    @property
    def session_id(self) -> str | None:
        return self.state.session_id

    def should_attach_session(self, is_initialize: bool) -> bool:
        return not is_initialize and self.state.session_id is not None

    def on_response(self, is_initialize: bool, session_id: str | None) -> None:
        """Record the session id issued in response to `initialize`.

        Session headers on any other response are ignored; the upstream may not
        swap our session unasked.
        """
        if not is_initialize:
            if session_id and session_id != self.state.session_id:
                logger.debug(f"Ignoring session ID on non-initialize response: {session_id}")
            return
        if session_id:
            self.state.session_id = session_id
            logger.debug(f"Received session ID: {session_id}")

    def on_not_found(self) -> None:
        if self.state.session_id is not None:
            logger.debug(f"Session {self.state.session_id} expired, clearing")
        self.state.session_id = None
