"""
Tests for password hashing and authentication against profiles.
"""
import pytest
import sys
from pathlib import Path

from sqlalchemy import create_engine, text

sys.path.insert(0, str(Path(__file__).parent.parent))

from fieldforce.auth import AuthManager


@pytest.fixture
def auth():
    return AuthManager()


@pytest.fixture
def engine(tmp_path, auth):
    engine = create_engine(f"sqlite:///{tmp_path / 'auth.db'}")
    pwd_hash, salt = auth.hash_password("s3cret")
    with engine.begin() as conn:
        conn.execute(text("""CREATE TABLE profiles (
            id TEXT PRIMARY KEY, first_name TEXT, last_name TEXT, email TEXT,
            role TEXT, supervisor_id TEXT, password_hash TEXT, password_salt TEXT)"""))
        conn.execute(
            text("""INSERT INTO profiles VALUES
                ('del-1', 'Sara', 'Idrissi', 'sara@example.com', 'Delegate', 'sup-1', :hash, :salt),
                ('x-1', 'No', 'Role', 'norole@example.com', 'Intern', NULL, :hash, :salt)"""),
            {'hash': pwd_hash, 'salt': salt}
        )
    return engine


class TestPasswords:
    """Salted SHA256 hashing."""

    def test_round_trip(self, auth):
        pwd_hash, salt = auth.hash_password("s3cret")
        assert auth.verify_password("s3cret", pwd_hash, salt)
        assert not auth.verify_password("wrong", pwd_hash, salt)

    def test_salt_changes_hash(self, auth):
        assert auth.hash_password("s3cret")[0] != auth.hash_password("s3cret")[0]

    def test_missing_hash(self, auth):
        assert not auth.verify_password("s3cret", None, "salt")
        assert not auth.verify_password("s3cret", "hash", "")


class TestAuthenticate:
    """Login against the profiles table."""

    def test_success(self, auth, engine):
        ok, user = auth.authenticate(" SARA@example.com ", "s3cret", engine=engine)

        assert ok
        assert user['id'] == 'del-1'
        assert user['role'] == 'Delegate'
        assert user['supervisor_id'] == 'sup-1'
        assert user['full_name'] == 'Sara Idrissi'

    def test_wrong_password(self, auth, engine):
        ok, result = auth.authenticate("sara@example.com", "nope", engine=engine)
        assert not ok
        assert result['error'] == "Invalid email or password"

    def test_unknown_email(self, auth, engine):
        ok, result = auth.authenticate("ghost@example.com", "s3cret", engine=engine)
        assert not ok
        assert result['error'] == "Invalid email or password"

    def test_unknown_role_is_refused(self, auth, engine):
        ok, result = auth.authenticate("norole@example.com", "s3cret", engine=engine)
        assert not ok
        assert "role" in result['error']
