"""Unit tests for user_service module."""

import math
import unittest
from dataclasses import asdict
from functools import partial
from unittest.mock import MagicMock

from adapter.fake.user_repository import FakeUserRepository
from domain.model.errors import (
    DomainError,
    DuplicateError,
    DuplicateUserError,
    NotFoundError,
    ValidationError,
)
from domain.model.user import PublicUser, User, UserUpdate
from port.user_repository import UserRepositoryError
from services.user_service import (
    create_user,
    delete_user,
    get_user,
    list_users,
    normalize_page,
    update_user,
)
from utils.password import hash_password

# Lowest bcrypt cost keeps the suite fast
fast_hasher = partial(hash_password, rounds=4)


class UserServiceTestCase(unittest.TestCase):

    def setUp(self):
        self.repo = FakeUserRepository()

    def _create(self, email='a@x.com', username='alice', password='pw123456', **kwargs) -> PublicUser:
        return create_user(
            self.repo, email=email, username=username, password=password,
            hasher=fast_hasher, **kwargs,
        )


class TestCreateUser(UserServiceTestCase):
    """Test create_user function."""

    def test_create_user_success(self):
        user = self._create(first_name='Alice', last_name='Liddell')

        self.assertIsInstance(user, PublicUser)
        self.assertTrue(user.id)
        self.assertEqual(user.email, 'a@x.com')
        self.assertEqual(user.username, 'alice')
        self.assertEqual(user.first_name, 'Alice')
        self.assertEqual(user.last_name, 'Liddell')
        self.assertTrue(user.is_active)
        self.assertIsNotNone(user.created_at)
        self.assertEqual(user.created_at, user.updated_at)

    def test_projection_never_contains_password_or_hash(self):
        user = self._create()
        stored = self.repo.get_by_id(user.id)

        values = asdict(user).values()
        self.assertNotIn('password_hash', asdict(user))
        self.assertNotIn('pw123456', values)
        self.assertNotIn(stored.password_hash, values)

    def test_password_is_stored_hashed(self):
        user = self._create()
        stored = self.repo.get_by_id(user.id)

        self.assertTrue(stored.password_hash)
        self.assertNotEqual(stored.password_hash, 'pw123456')
        self.assertTrue(stored.password_hash.startswith('$2'))

    def test_duplicate_email_raises_conflict(self):
        self._create()

        with self.assertRaises(DuplicateUserError) as ctx:
            self._create(username='bob')

        self.assertEqual(ctx.exception.field, 'email')
        self.assertIsInstance(ctx.exception, DuplicateError)
        self.assertEqual(len(self.repo.store), 1)

    def test_duplicate_email_checked_before_username(self):
        """Email conflict is reported even when the username is also taken."""
        self._create()

        with self.assertRaises(DuplicateUserError) as ctx:
            self._create()

        self.assertEqual(ctx.exception.field, 'email')

    def test_duplicate_username_raises_conflict(self):
        self._create()

        with self.assertRaises(DuplicateUserError) as ctx:
            self._create(email='other@x.com')

        self.assertEqual(ctx.exception.field, 'username')
        self.assertEqual(str(ctx.exception), 'user with this username already exists')

    def test_duplicate_check_does_not_hash(self):
        self._create()
        hasher = MagicMock(return_value='hashed')

        with self.assertRaises(DuplicateUserError):
            create_user(self.repo, 'a@x.com', 'bob', 'secret', hasher=hasher)

        hasher.assert_not_called()

    def test_hash_failure_is_internal(self):
        hasher = MagicMock(side_effect=ValueError('salt exhausted'))

        with self.assertRaises(DomainError) as ctx:
            create_user(self.repo, 'a@x.com', 'alice', 'secret', hasher=hasher)

        self.assertEqual(type(ctx.exception), DomainError)
        self.assertEqual(str(ctx.exception), 'failed to process password')
        self.assertEqual(self.repo.store, {})

    def test_store_race_surfaces_as_conflict(self):
        """A unique-index violation from the store is a conflict, not an internal error."""
        repo = MagicMock()
        repo.get_by_email.return_value = None
        repo.get_by_username.return_value = None
        repo.create.side_effect = DuplicateUserError('email')

        with self.assertRaises(DuplicateUserError):
            create_user(repo, 'a@x.com', 'alice', 'secret', hasher=fast_hasher)

    def test_store_failure_is_internal_without_driver_text(self):
        repo = MagicMock()
        repo.get_by_email.return_value = None
        repo.get_by_username.return_value = None
        repo.create.side_effect = UserRepositoryError('connection reset by peer')

        with self.assertRaises(DomainError) as ctx:
            create_user(repo, 'a@x.com', 'alice', 'secret', hasher=fast_hasher)

        self.assertEqual(str(ctx.exception), 'failed to create user')

    def test_lookup_failure_is_internal(self):
        repo = MagicMock()
        repo.get_by_email.side_effect = UserRepositoryError('timeout')

        with self.assertRaises(DomainError) as ctx:
            create_user(repo, 'a@x.com', 'alice', 'secret', hasher=fast_hasher)

        self.assertNotIsInstance(ctx.exception, DuplicateError)
        repo.create.assert_not_called()


class TestGetUser(UserServiceTestCase):
    """Test get_user function."""

    def test_round_trip_matches_created_projection(self):
        created = self._create(first_name='Alice')

        fetched = get_user(self.repo, created.id)

        self.assertEqual(fetched, created)

    def test_missing_user_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            get_user(self.repo, 'does-not-exist')

    def test_empty_id_raises_validation_error(self):
        with self.assertRaises(ValidationError):
            get_user(self.repo, '')

    def test_store_failure_is_internal(self):
        repo = MagicMock()
        repo.get_by_id.side_effect = UserRepositoryError('boom')

        with self.assertRaises(DomainError) as ctx:
            get_user(repo, 'some-id')

        self.assertNotIsInstance(ctx.exception, NotFoundError)
        self.assertEqual(str(ctx.exception), 'failed to get user')


class TestUpdateUser(UserServiceTestCase):
    """Test update_user function."""

    def test_update_is_active_leaves_names_unchanged(self):
        created = self._create(first_name='Alice', last_name='Liddell')

        updated = update_user(self.repo, created.id, UserUpdate(is_active=False))

        self.assertFalse(updated.is_active)
        self.assertEqual(updated.first_name, 'Alice')
        self.assertEqual(updated.last_name, 'Liddell')
        self.assertFalse(self.repo.get_by_id(created.id).is_active)

    def test_update_overwrites_present_fields(self):
        created = self._create(first_name='Alice')

        updated = update_user(self.repo, created.id, UserUpdate(first_name='Al', last_name='L'))

        self.assertEqual(updated.first_name, 'Al')
        self.assertEqual(updated.last_name, 'L')
        self.assertTrue(updated.is_active)

    def test_update_with_null_clears_name(self):
        created = self._create(first_name='Alice')

        updated = update_user(self.repo, created.id, UserUpdate(first_name=None))

        self.assertIsNone(updated.first_name)

    def test_update_with_empty_string_sets_empty_name(self):
        created = self._create(first_name='Alice')

        updated = update_user(self.repo, created.id, UserUpdate(first_name=''))

        self.assertEqual(updated.first_name, '')

    def test_empty_update_only_refreshes_updated_at(self):
        created = self._create(first_name='Alice', last_name='Liddell')
        before = self.repo.get_by_id(created.id)

        updated = update_user(self.repo, created.id, UserUpdate())
        after = self.repo.get_by_id(created.id)

        self.assertGreaterEqual(after.updated_at, before.updated_at)
        self.assertEqual(
            {k: v for k, v in asdict(after).items() if k != 'updated_at'},
            {k: v for k, v in asdict(before).items() if k != 'updated_at'},
        )
        self.assertEqual(updated.updated_at, after.updated_at)

    def test_update_does_not_touch_email_username_or_hash(self):
        created = self._create()
        before = self.repo.get_by_id(created.id)

        update_user(self.repo, created.id, UserUpdate(first_name='X', is_active=False))
        after = self.repo.get_by_id(created.id)

        self.assertEqual(after.email, before.email)
        self.assertEqual(after.username, before.username)
        self.assertEqual(after.password_hash, before.password_hash)
        self.assertEqual(after.created_at, before.created_at)

    def test_missing_user_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            update_user(self.repo, 'missing', UserUpdate(is_active=False))

    def test_user_deleted_between_read_and_write_is_not_found(self):
        repo = MagicMock()
        repo.get_by_id.return_value = User(
            id='u1', email='a@x.com', username='alice', password_hash='h',
        )
        repo.update.return_value = None

        with self.assertRaises(NotFoundError):
            update_user(repo, 'u1', UserUpdate(is_active=False))

    def test_store_failure_is_internal(self):
        repo = MagicMock()
        repo.get_by_id.return_value = User(
            id='u1', email='a@x.com', username='alice', password_hash='h',
        )
        repo.update.side_effect = UserRepositoryError('write concern')

        with self.assertRaises(DomainError) as ctx:
            update_user(repo, 'u1', UserUpdate(is_active=False))

        self.assertEqual(str(ctx.exception), 'failed to update user')


class TestDeleteUser(UserServiceTestCase):
    """Test delete_user function."""

    def test_delete_then_get_is_not_found(self):
        created = self._create()

        delete_user(self.repo, created.id)

        with self.assertRaises(NotFoundError):
            get_user(self.repo, created.id)

    def test_missing_user_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            delete_user(self.repo, 'missing')

    def test_second_delete_is_not_found(self):
        created = self._create()
        delete_user(self.repo, created.id)

        with self.assertRaises(NotFoundError):
            delete_user(self.repo, created.id)

    def test_concurrent_delete_between_check_and_delete_is_not_found(self):
        repo = MagicMock()
        repo.get_by_id.return_value = User(
            id='u1', email='a@x.com', username='alice', password_hash='h',
        )
        repo.delete.return_value = False

        with self.assertRaises(NotFoundError):
            delete_user(repo, 'u1')

    def test_store_failure_is_internal(self):
        repo = MagicMock()
        repo.get_by_id.return_value = User(
            id='u1', email='a@x.com', username='alice', password_hash='h',
        )
        repo.delete.side_effect = UserRepositoryError('boom')

        with self.assertRaises(DomainError) as ctx:
            delete_user(repo, 'u1')

        self.assertEqual(str(ctx.exception), 'failed to delete user')


class TestListUsers(UserServiceTestCase):
    """Test list_users and page normalization."""

    def _seed(self, count: int):
        for i in range(count):
            self._create(email=f'user{i}@x.com', username=f'user{i}')

    def test_normalize_page(self):
        self.assertEqual(normalize_page(0, 0), (1, 10))
        self.assertEqual(normalize_page(-5, 101), (1, 10))
        self.assertEqual(normalize_page(3, 100), (3, 100))
        self.assertEqual(normalize_page(1, 1), (1, 1))

    def test_zero_page_and_limit_behave_like_defaults(self):
        self._seed(12)

        normalized = list_users(self.repo, page=0, limit=0)
        default = list_users(self.repo, page=1, limit=10)

        self.assertEqual(normalized.page, 1)
        self.assertEqual(normalized.limit, 10)
        self.assertEqual(normalized.items, default.items)
        self.assertEqual(normalized.total, default.total)

    def test_second_page_uses_offset(self):
        repo = MagicMock()
        repo.list.return_value = ([], 25)

        result = list_users(repo, page=2, limit=10)

        repo.list.assert_called_once_with(10, 10)
        self.assertEqual(result.total, 25)
        self.assertEqual(result.total_pages, 3)

    def test_pages_in_creation_order(self):
        self._seed(15)

        first = list_users(self.repo, page=1, limit=10)
        second = list_users(self.repo, page=2, limit=10)

        self.assertEqual(len(first.items), 10)
        self.assertEqual(len(second.items), 5)
        self.assertEqual(first.items[0].username, 'user0')
        self.assertEqual(second.items[0].username, 'user10')
        self.assertEqual(first.total, 15)
        self.assertEqual(first.total_pages, 2)

    def test_total_pages_exact_on_boundary(self):
        self._seed(20)

        result = list_users(self.repo, page=1, limit=10)

        self.assertEqual(result.total_pages, 2)
        self.assertEqual(result.total_pages, math.ceil(20 / 10))

    def test_empty_store(self):
        result = list_users(self.repo)

        self.assertEqual(result.items, [])
        self.assertEqual(result.total, 0)
        self.assertEqual(result.total_pages, 0)

    def test_page_past_end_is_empty(self):
        self._seed(3)

        result = list_users(self.repo, page=5, limit=10)

        self.assertEqual(result.items, [])
        self.assertEqual(result.total, 3)

    def test_store_failure_is_internal(self):
        repo = MagicMock()
        repo.list.side_effect = UserRepositoryError('cursor killed')

        with self.assertRaises(DomainError) as ctx:
            list_users(repo, page=1, limit=10)

        self.assertEqual(str(ctx.exception), 'failed to list users')


class TestScenario(UserServiceTestCase):
    """End-to-end lifecycle against the in-memory repository."""

    def test_create_conflict_update_delete(self):
        alice = self._create(email='a@x.com', username='alice', password='pw123456')
        self.assertTrue(alice.is_active)

        with self.assertRaises(DuplicateUserError):
            self._create(email='a@x.com', username='alice2')

        updated = update_user(self.repo, alice.id, UserUpdate(is_active=False))
        self.assertFalse(updated.is_active)
        self.assertEqual(updated.first_name, alice.first_name)

        delete_user(self.repo, alice.id)
        with self.assertRaises(NotFoundError):
            get_user(self.repo, alice.id)


if __name__ == '__main__':
    unittest.main()
