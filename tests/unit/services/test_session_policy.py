from datetime import timedelta

from hypothesis import given
from hypothesis import strategies as st

from authcore.app.services.session_policy import SessionPolicy
from authcore.domain.base import EPOCH, utcnow
from tests.unit.factories import make_session

ROLLING = timedelta(days=7)
FORCED = timedelta(days=30)

offsets = st.integers(min_value=0, max_value=60 * 24 * 3600).map(lambda s: timedelta(seconds=s))


def test_fresh_session_does_not_need_reauth():
    now = utcnow()
    assert not SessionPolicy().requires_reauth(make_session(now=now), now)


def test_rolling_boundary_is_expired():
    now = utcnow()
    policy = SessionPolicy()

    session = make_session(now=now, refreshed_at=now - ROLLING)
    assert policy.requires_reauth(session, now)

    session = make_session(now=now, refreshed_at=now - ROLLING + timedelta(seconds=1))
    assert not policy.requires_reauth(session, now)


def test_forced_boundary_is_expired():
    now = utcnow()
    policy = SessionPolicy()

    session = make_session(now=now, last_authenticated_at=now - FORCED)
    assert policy.requires_reauth(session, now)

    session = make_session(now=now, last_authenticated_at=now - FORCED + timedelta(seconds=1))
    assert not policy.requires_reauth(session, now)


def test_logged_out_session_needs_reauth():
    now = utcnow()
    assert SessionPolicy().requires_reauth(make_session(now=now, last_authenticated_at=EPOCH), now)


@given(since_refresh=offsets, since_auth=offsets)
def test_requires_reauth_iff_either_window_elapsed(since_refresh, since_auth):
    now = utcnow()
    session = make_session(
        now=now, refreshed_at=now - since_refresh, last_authenticated_at=now - since_auth
    )

    expected = since_refresh >= ROLLING or since_auth >= FORCED
    assert SessionPolicy().requires_reauth(session, now) == expected


def test_logged_in_until_is_earliest_deadline():
    now = utcnow()
    policy = SessionPolicy()

    session = make_session(now=now, last_authenticated_at=now - timedelta(days=28))
    assert policy.reauth_deadlines(session) == (now + ROLLING, now + timedelta(days=2))
    assert policy.logged_in_until(session) == now + timedelta(days=2)
    assert policy.jwt_valid_until(session) == now + timedelta(minutes=15)
