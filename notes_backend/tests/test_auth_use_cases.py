from __future__ import annotations

from dataclasses import replace
from datetime import UTC, date, datetime

import pytest

from notes_backend.application.services.one_time_codes import OneTimeCodeIssuer
from notes_backend.application.use_cases.users.confirm_registration import (
    ConfirmRegistrationUseCase,
)
from notes_backend.application.use_cases.users.federated_login import FederatedLoginUseCase
from notes_backend.application.use_cases.users.get_current_user import GetCurrentUserUseCase
from notes_backend.application.use_cases.users.login_user import LoginUserUseCase
from notes_backend.application.use_cases.users.resend_code import ResendCodeUseCase
from notes_backend.application.use_cases.users.start_registration import (
    StartRegistrationUseCase,
)
from notes_backend.domain.users.entities import AuthProvider, FederatedIdentity, User
from notes_backend.domain.users.exceptions import (
    DeliveryError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidOrExpiredCodeError,
    InvalidTokenError,
    PendingVerificationNotFoundError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from notes_backend.domain.users.repositories import (
    IdentityVerifier,
    NotificationSender,
    PasswordHasher,
    UserRepository,
)
from notes_backend.infrastructure.auth.jwt_credentials import JwtCredentialIssuer
from notes_backend.infrastructure.auth.pending_registrations import PendingRegistrationStore
from notes_backend.shared.errors.base import ValidationError


class InMemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self._users: dict[int, User] = {}
        self._seq = 1
        self.fail_next_add = False

    def find_by_email(self, email: str) -> User | None:
        email = email.strip().lower()
        return next((u for u in self._users.values() if u.email == email), None)

    def find_local_by_email(self, email: str) -> User | None:
        user = self.find_by_email(email)
        if user is None or user.provider is not AuthProvider.LOCAL:
            return None
        return user

    def find_by_id(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    def add(self, user: User) -> User:
        if self.fail_next_add:
            self.fail_next_add = False
            raise RuntimeError("database is down")
        if self.find_by_email(user.email) is not None:
            raise UserAlreadyExistsError()
        new_user = replace(user, id=self._seq)
        self._seq += 1
        self._users[new_user.id] = new_user
        return new_user

    def mark_verified(
        self,
        user_id: int,
        *,
        password_hash: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        date_of_birth: date | None = None,
    ) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise UserNotFoundError()
        updated = replace(
            user,
            is_verified=True,
            password_hash=password_hash or user.password_hash,
            first_name=first_name or user.first_name,
            last_name=last_name or user.last_name,
            date_of_birth=date_of_birth or user.date_of_birth,
        )
        self._users[user_id] = updated
        return updated

    def count(self) -> int:
        return len(self._users)


class DeterministicHasher(PasswordHasher):
    def __init__(self) -> None:
        self.verify_calls = 0

    def hash(self, password: str) -> str:
        return f"hashed:{password}"

    def verify(self, password: str, hashed: str) -> bool:
        self.verify_calls += 1
        return hashed == f"hashed:{password}"


class RecordingNotifier(NotificationSender):
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False

    def send(self, address: str, subject: str, body: str, *, html: str | None = None) -> None:
        if self.fail:
            raise DeliveryError()
        self.sent.append((address, subject, body))

    def last_code(self) -> str:
        body = self.sent[-1][2]
        return next(word.rstrip(".") for word in body.split() if word.rstrip(".").isdigit())


class StubVerifier(IdentityVerifier):
    def __init__(self) -> None:
        self.identities: dict[str, FederatedIdentity] = {}

    def verify(self, token: str) -> FederatedIdentity:
        try:
            return self.identities[token]
        except KeyError:
            raise InvalidTokenError() from None


class Harness:
    def __init__(self) -> None:
        self.users = InMemoryUserRepository()
        self.hasher = DeterministicHasher()
        self.notifier = RecordingNotifier()
        self.verifier = StubVerifier()
        self.store = PendingRegistrationStore()
        self.credentials = JwtCredentialIssuer("unit-test-secret-with-enough-length!!")
        self.codes = OneTimeCodeIssuer(store=self.store, notifier=self.notifier, app_name="Notes")
        self.start = StartRegistrationUseCase(users=self.users, codes=self.codes)
        self.confirm = ConfirmRegistrationUseCase(
            users=self.users,
            pending=self.store,
            password_hasher=self.hasher,
            credentials=self.credentials,
        )
        self.login = LoginUserUseCase(
            users=self.users, password_hasher=self.hasher, credentials=self.credentials
        )
        self.federated = FederatedLoginUseCase(
            users=self.users, verifier=self.verifier, credentials=self.credentials
        )
        self.resend = ResendCodeUseCase(users=self.users, codes=self.codes)
        self.current_user = GetCurrentUserUseCase(users=self.users)

    def register(self, email: str = "ann@x.com", password: str = "secret1") -> User:
        self.start.execute("Ann", "Lee", email, password)
        return self.confirm.execute(email, self.notifier.last_code()).user


@pytest.fixture()
def harness() -> Harness:
    return Harness()


def test_signup_then_confirm_creates_verified_user(harness: Harness) -> None:
    entry = harness.start.execute(" Ann ", "Lee", "Ann@X.com", "secret1")

    assert entry.email == "ann@x.com"
    assert harness.users.count() == 0
    address, subject, _ = harness.notifier.sent[-1]
    assert address == "ann@x.com"
    assert subject == "Verify your email address - Notes"

    result = harness.confirm.execute("ann@x.com", harness.notifier.last_code())

    assert result.created is True
    assert result.user.first_name == "Ann"
    assert result.user.is_verified is True
    assert result.user.password_hash == "hashed:secret1"
    assert harness.credentials.authenticate(result.access_token) == result.user.id


def test_confirm_twice_fails_second_time(harness: Harness) -> None:
    harness.start.execute("Ann", "Lee", "ann@x.com", "secret1")
    code = harness.notifier.last_code()
    harness.confirm.execute("ann@x.com", code)

    with pytest.raises(InvalidOrExpiredCodeError):
        harness.confirm.execute("ann@x.com", code)
    assert harness.users.count() == 1


def test_wrong_code_does_not_consume_entry(harness: Harness) -> None:
    harness.start.execute("Ann", "Lee", "ann@x.com", "secret1")
    code = harness.notifier.last_code()
    wrong = "000000" if code != "000000" else "111111"

    with pytest.raises(InvalidCodeError) as info:
        harness.confirm.execute("ann@x.com", wrong)

    assert info.value.message == InvalidOrExpiredCodeError().message
    assert harness.confirm.execute("ann@x.com", code).created is True


def test_short_password_is_rejected_before_anything_is_stored(harness: Harness) -> None:
    with pytest.raises(ValidationError) as info:
        harness.start.execute("Ann", "Lee", "ann@x.com", "abc")

    assert info.value.context == {"fields": ["password"]}
    assert harness.store.get("ann@x.com") is None
    assert harness.notifier.sent == []


def test_underage_signup_is_rejected(harness: Harness) -> None:
    born = date(datetime.now(UTC).year - 5, 1, 1)
    with pytest.raises(ValidationError):
        harness.start.execute("Ann", "Lee", "ann@x.com", "secret1", born)


def test_signup_for_existing_verified_user_conflicts(harness: Harness) -> None:
    harness.register()

    with pytest.raises(UserAlreadyExistsError):
        harness.start.execute("Ann", "Lee", "ANN@x.com", "secret1")


def test_delivery_failure_surfaces_as_delivery_error(harness: Harness) -> None:
    harness.notifier.fail = True

    with pytest.raises(DeliveryError):
        harness.start.execute("Ann", "Lee", "ann@x.com", "secret1")


def test_persist_failure_restores_pending_entry(harness: Harness) -> None:
    harness.start.execute("Ann", "Lee", "ann@x.com", "secret1")
    code = harness.notifier.last_code()
    harness.users.fail_next_add = True

    with pytest.raises(RuntimeError):
        harness.confirm.execute("ann@x.com", code)

    assert harness.confirm.execute("ann@x.com", code).created is True


def test_resend_invalidates_previous_code(harness: Harness) -> None:
    harness.start.execute("Ann", "Lee", "ann@x.com", "secret1")
    old_code = harness.notifier.last_code()

    harness.resend.execute("ann@x.com")
    new_code = harness.notifier.last_code()
    assert harness.notifier.sent[-1][1] == "Notes - New verification code"

    if old_code != new_code:
        with pytest.raises(InvalidCodeError):
            harness.confirm.execute("ann@x.com", old_code)
    assert harness.confirm.execute("ann@x.com", new_code).user.email == "ann@x.com"


def test_resend_without_pending_entry_is_not_found(harness: Harness) -> None:
    with pytest.raises(PendingVerificationNotFoundError):
        harness.resend.execute("nobody@x.com")


def test_resend_requires_email(harness: Harness) -> None:
    with pytest.raises(ValidationError):
        harness.resend.execute("  ")


def test_resend_for_unverified_user_binds_to_existing_record(harness: Harness) -> None:
    legacy = harness.users.add(
        User(
            id=0,
            first_name="Ann",
            last_name="Lee",
            email="ann@x.com",
            provider=AuthProvider.LOCAL,
            is_verified=False,
            password_hash="hashed:secret1",
        )
    )

    entry = harness.resend.execute("ann@x.com")
    assert entry.draft.user_id == legacy.id

    result = harness.confirm.execute("ann@x.com", harness.notifier.last_code())
    assert result.user.id == legacy.id
    assert result.user.is_verified is True
    assert harness.users.count() == 1


def test_login_round_trips_to_same_user(harness: Harness) -> None:
    user = harness.register()

    result = harness.login.execute("ANN@x.com ", "secret1")

    assert result.user.id == user.id
    assert harness.credentials.authenticate(result.access_token) == user.id


def test_login_failures_are_indistinguishable(harness: Harness) -> None:
    harness.register()

    with pytest.raises(InvalidCredentialsError) as wrong_password:
        harness.login.execute("ann@x.com", "wrong-password")
    with pytest.raises(InvalidCredentialsError) as unknown_email:
        harness.login.execute("nobody@x.com", "secret1")

    assert wrong_password.value.to_dict() == unknown_email.value.to_dict()


def test_login_with_unknown_email_still_verifies_a_password(harness: Harness) -> None:
    with pytest.raises(InvalidCredentialsError):
        harness.login.execute("nobody@x.com", "secret1")
    assert harness.hasher.verify_calls == 1


def test_login_requires_both_fields(harness: Harness) -> None:
    with pytest.raises(ValidationError):
        harness.login.execute("ann@x.com", "")


def test_federated_login_creates_once_and_issues_distinct_tokens(harness: Harness) -> None:
    identity = FederatedIdentity(subject="g-1", email="bob@x.com", first_name="Bob", last_name="Ray")
    harness.verifier.identities["t1"] = identity
    harness.verifier.identities["t2"] = identity

    first = harness.federated.execute("t1")
    second = harness.federated.execute("t2")

    assert first.created is True
    assert second.created is False
    assert first.user.id == second.user.id
    assert first.user.provider is AuthProvider.GOOGLE
    assert harness.users.count() == 1
    assert harness.credentials.authenticate(first.access_token) == first.user.id
    assert harness.credentials.authenticate(second.access_token) == first.user.id


def test_federated_login_links_existing_local_account_by_email(harness: Harness) -> None:
    user = harness.register(email="bob@x.com")
    harness.verifier.identities["t1"] = FederatedIdentity(subject="g-1", email="bob@x.com")

    result = harness.federated.execute("t1")

    assert result.created is False
    assert result.user.id == user.id


def test_federated_login_rejects_bad_token(harness: Harness) -> None:
    with pytest.raises(InvalidTokenError):
        harness.federated.execute("forged")
    with pytest.raises(ValidationError):
        harness.federated.execute("  ")


def test_federated_login_recovers_from_creation_race(harness: Harness) -> None:
    identity = FederatedIdentity(subject="g-1", email="bob@x.com", first_name="Bob")
    harness.verifier.identities["t1"] = identity
    winner = harness.users.add(
        User(
            id=0,
            first_name="Bob",
            last_name="",
            email="bob@x.com",
            provider=AuthProvider.GOOGLE,
            is_verified=True,
        )
    )

    original_find = harness.users.find_by_email
    calls = {"n": 0}

    def racy_find(email: str) -> User | None:
        calls["n"] += 1
        # first lookup happens before the concurrent insert lands
        return None if calls["n"] == 1 else original_find(email)

    harness.users.find_by_email = racy_find  # type: ignore[method-assign]

    result = harness.federated.execute("t1")

    assert result.user.id == winner.id
    assert result.created is False


def test_current_user_lookup(harness: Harness) -> None:
    user = harness.register()

    assert harness.current_user.execute(user.id).email == "ann@x.com"
    with pytest.raises(UserNotFoundError):
        harness.current_user.execute(999)
