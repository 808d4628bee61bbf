"""Registration and login."""

import asyncio
import logging
from typing import Optional

from ..api.common.auth import PasswordHasher, TokenService
from ..errors import ConflictError, InvalidCredentialsError, ValidationError
from ..storage import USERS, DocumentStore, DuplicateDocumentError, User
from .base import ResourceHandler

logger = logging.getLogger(__name__)


class UserHandler(ResourceHandler):
    """Creates users and exchanges their credentials for tokens."""

    def __init__(
        self,
        store: DocumentStore,
        password_hasher: PasswordHasher,
        token_service: TokenService,
    ):
        super().__init__(store)
        self.password_hasher = password_hasher
        self.token_service = token_service
        self._decoy_hash: Optional[str] = None

    @staticmethod
    def _validate(username: str, password: str) -> None:
        if not isinstance(username, str) or not username.strip():
            raise ValidationError("Username is required", field="username")
        if not isinstance(password, str) or not password:
            raise ValidationError("Password is required", field="password")

    async def register(self, username: str, password: str) -> str:
        """Register a user and return the new user id."""
        self._validate(username, password)

        if await self.store.find_one(USERS, {"username": username}) is not None:
            logger.info(f"Registration rejected, username taken: {username}")
            raise ConflictError()

        password_hash = await asyncio.to_thread(self.password_hasher.hash, password)
        try:
            user_id = await self.store.insert(USERS, User.new_document(username, password_hash))
        except DuplicateDocumentError as e:
            # Lost a race with a concurrent registration of the same name.
            logger.info(f"Registration rejected by unique index: {username}")
            raise ConflictError(cause=e)

        logger.info(f"Registered user {user_id} ({username})")
        return user_id

    async def login(self, username: str, password: str) -> str:
        """Check credentials and return a fresh token."""
        self._validate(username, password)

        doc = await self.store.find_one(USERS, {"username": username})
        if doc is None:
            # Burn the same hashing work as a real check.
            await asyncio.to_thread(self._verify_decoy, password)
            logger.info("Login failed: unknown username")
            raise InvalidCredentialsError()

        user = User.from_document(doc)
        valid = await asyncio.to_thread(self.password_hasher.verify, password, user.password_hash)
        if not valid:
            logger.info(f"Login failed: wrong password for user {user.id}")
            raise InvalidCredentialsError()

        logger.info(f"User {user.id} logged in")
        return self.token_service.issue(user.id)

    async def prepare(self) -> None:
        """Build the decoy hash off the event loop before serving logins."""
        await asyncio.to_thread(self._get_decoy_hash)

    def _get_decoy_hash(self) -> str:
        if self._decoy_hash is None:
            self._decoy_hash = self.password_hasher.hash("decoy-password")
        return self._decoy_hash

    def _verify_decoy(self, password: str) -> bool:
        return self.password_hasher.verify(password, self._get_decoy_hash())
