"""MongoDB implementation of UserRepository."""

import uuid
from datetime import datetime, timezone
from logging import getLogger

from pymongo import ASCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from adapter.mongodb.connection import USERS_COLLECTION_NAME
from domain.model.errors import DuplicateUserError
from domain.model.user import User
from port.user_repository import UserRepositoryError

logger = getLogger(__name__)

# BSON encodes skip as int64
MAX_SKIP = 2 ** 63 - 1


def _duplicate_field(error: DuplicateKeyError) -> str:
    """Work out which unique key a duplicate-key error was raised for."""
    key_pattern = (error.details or {}).get('keyPattern') or {}
    if 'username' in key_pattern or 'idx_users_username' in str(error):
        return 'username'
    return 'email'


class MongoUserRepository:
    def __init__(self, db: Database):
        self.collection = db[USERS_COLLECTION_NAME]

    def ensure_indexes(self) -> bool:
        """Create indexes for users collection."""
        from adapter.mongodb.indexes import create_index_safe

        try:
            create_index_safe(self.collection, [('email', 1)], 'idx_users_email', unique=True)
            create_index_safe(self.collection, [('username', 1)], 'idx_users_username', unique=True)
            create_index_safe(self.collection, [('created_at', 1)], 'idx_users_created_at')
            return True
        except Exception as e:
            logger.error("Failed to create users indexes", extra={"error": str(e)})
            return False

    def _to_domain(self, doc: dict) -> User:
        """Convert MongoDB document to User domain model."""
        return User(
            id=doc['_id'],
            email=doc['email'],
            username=doc['username'],
            password_hash=doc['password_hash'],
            first_name=doc.get('first_name'),
            last_name=doc.get('last_name'),
            is_active=doc.get('is_active', True),
            created_at=doc['created_at'],
            updated_at=doc['updated_at'],
        )

    # ── write operations ─────────────────────────────────────

    def create(self, user: User) -> User:
        """Insert a new user document and return the stored User."""
        user_id = uuid.uuid4().hex
        now = datetime.now(timezone.utc)
        user_doc = {
            '_id': user_id,
            'email': user.email,
            'username': user.username,
            'password_hash': user.password_hash,
            'first_name': user.first_name,
            'last_name': user.last_name,
            'is_active': user.is_active,
            'created_at': now,
            'updated_at': now,
        }
        try:
            self.collection.insert_one(user_doc)
        except DuplicateKeyError as e:
            field = _duplicate_field(e)
            logger.warning("User creation rejected by unique index", extra={"field": field})
            raise DuplicateUserError(field) from e
        except PyMongoError as e:
            logger.error("Failed to create user", extra={"email": user.email, "error": str(e)})
            raise UserRepositoryError("failed to insert user") from e

        logger.info("User created", extra={"userId": user_id, "email": user.email})
        return self._to_domain(user_doc)

    def update(self, user_id: str, user: User) -> User | None:
        """Overwrite the mutable fields and refresh updated_at."""
        try:
            doc = self.collection.find_one_and_update(
                {'_id': user_id},
                {'$set': {
                    'first_name': user.first_name,
                    'last_name': user.last_name,
                    'is_active': user.is_active,
                    'updated_at': datetime.now(timezone.utc),
                }},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error("Failed to update user", extra={"userId": user_id, "error": str(e)})
            raise UserRepositoryError("failed to update user") from e

        if doc is None:
            logger.warning("User not found for update", extra={"userId": user_id})
            return None
        logger.debug("User updated", extra={"userId": user_id})
        return self._to_domain(doc)

    def delete(self, user_id: str) -> bool:
        """Hard delete a user document."""
        try:
            result = self.collection.delete_one({'_id': user_id})
        except PyMongoError as e:
            logger.error("Failed to delete user", extra={"userId": user_id, "error": str(e)})
            raise UserRepositoryError("failed to delete user") from e

        if result.deleted_count == 0:
            logger.warning("User not found for deletion", extra={"userId": user_id})
            return False
        logger.info("User deleted", extra={"userId": user_id})
        return True

    # ── read operations ──────────────────────────────────────

    def _find_one(self, query: dict) -> User | None:
        try:
            doc = self.collection.find_one(query)
        except PyMongoError as e:
            logger.error("Failed to get user", extra={"query": list(query), "error": str(e)})
            raise UserRepositoryError("failed to read user") from e
        return self._to_domain(doc) if doc else None

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        return self._find_one({'_id': user_id})

    def get_by_email(self, email: str) -> User | None:
        """Find a user by email. Return User or None if not found."""
        return self._find_one({'email': email})

    def get_by_username(self, username: str) -> User | None:
        """Find a user by username. Return User or None if not found."""
        return self._find_one({'username': username})

    def list(self, offset: int, limit: int) -> tuple[list[User], int]:
        """List users oldest first with skip/limit pagination."""
        try:
            total_count = self.collection.count_documents({})
            if offset > MAX_SKIP:
                return [], total_count
            docs = (
                self.collection.find({})
                .sort([('created_at', ASCENDING), ('_id', ASCENDING)])
                .skip(offset)
                .limit(limit)
            )
            users = [self._to_domain(doc) for doc in docs]
        except PyMongoError as e:
            logger.error("Failed to list users", extra={"offset": offset, "limit": limit, "error": str(e)})
            raise UserRepositoryError("failed to list users") from e

        logger.debug("Listed users", extra={"count": len(users), "total": total_count})
        return users, total_count
