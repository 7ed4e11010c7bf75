import asyncio
import logging
from enum import Enum
from typing import Optional

from ..models.models import Identity
from ..utils.errors import StoreError

logger = logging.getLogger(__name__)


class SessionState(Enum):
    LOADING = 'loading'
    SIGNED_IN = 'signed_in'
    SIGNED_OUT = 'signed_out'


class SessionStore:
    """Current identity of one user, backed by the data service.

    A store created with a token starts LOADING and only settles once
    ready() has asked the backend whether the token is still valid, so
    callers can tell "not checked yet" apart from "signed out".
    """

    def __init__(self, backend=None, token: Optional[str] = None):
        self.backend = backend
        self._token = token
        self._identity: Optional[Identity] = None
        self._resolving: Optional[asyncio.Task] = None
        self._state = SessionState.LOADING if token else SessionState.SIGNED_OUT

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state is SessionState.LOADING

    def current_identity(self) -> Optional[Identity]:
        return self._identity

    def attach(self, backend) -> None:
        self.backend = backend

    async def ready(self) -> Optional[Identity]:
        if self._state is SessionState.LOADING:
            if self._resolving is None:
                self._resolving = asyncio.ensure_future(self._resolve())
            await asyncio.shield(self._resolving)
        return self._identity

    async def _resolve(self) -> None:
        try:
            identity = await asyncio.to_thread(self.backend.get_session, self._token)
        except StoreError as e:
            logger.error(f"Could not restore session: {e}")
            identity = None
        finally:
            self._resolving = None
        self._set_identity(identity)

    def _set_identity(self, identity: Optional[Identity]) -> None:
        self._identity = identity
        self._token = identity.token if identity else None
        self._state = SessionState.SIGNED_IN if identity else SessionState.SIGNED_OUT

    async def sign_in(self, email: str, password: str) -> Identity:
        identity = await asyncio.to_thread(self.backend.sign_in, email, password)
        self._set_identity(identity)
        logger.info(f"User {identity.user_id} signed in")
        return identity

    async def sign_up(self, email: str, password: str) -> Identity:
        identity = await asyncio.to_thread(self.backend.sign_up, email, password)
        self._set_identity(identity)
        logger.info(f"User {identity.user_id} registered")
        return identity

    async def sign_out(self) -> None:
        token = self._token
        self._set_identity(None)
        if not token:
            return
        try:
            await asyncio.to_thread(self.backend.sign_out, token)
        except StoreError as e:
            logger.error(f"Failed to end remote session: {e}")

    # The backend and any pending lookup stay in this process; a restored
    # store re-validates its token.
    def __getstate__(self):
        return {'token': self._token}

    def __setstate__(self, state):
        self.__init__(backend=None, token=state.get('token'))
