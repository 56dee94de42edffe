"""Unit tests for reward levels, progress and the points ledger."""
import pytest

from heartbeat.models.reward import Reward, RewardTransaction, TransactionType
from heartbeat.services.rewards import (
    DIAMOND_PROGRESS,
    LEVEL_THRESHOLDS,
    award_points,
    level_for_points,
    level_threshold,
    reward_progress,
)
from tests.conftest import signup_and_login


def test_level_boundaries():
    assert level_for_points(0) == "Bronze"
    assert level_for_points(499) == "Bronze"
    assert level_for_points(500) == "Silver"
    assert level_for_points(999) == "Silver"
    assert level_for_points(1000) == "Gold"
    assert level_for_points(2000) == "Platinum"
    assert level_for_points(4999) == "Platinum"
    assert level_for_points(5000) == "Diamond"
    assert level_for_points(10 ** 6) == "Diamond"


def test_level_never_drops_as_points_grow():
    order = [name for name, _ in LEVEL_THRESHOLDS]
    previous = 0
    for points in range(0, 6001):
        rank = order.index(level_for_points(points))
        assert rank >= previous, points
        previous = rank
    assert previous == len(order) - 1


def test_negative_points_rejected():
    with pytest.raises(ValueError):
        level_for_points(-1)


def test_level_threshold_lookup():
    assert level_threshold("Gold") == 1000
    with pytest.raises(ValueError):
        level_threshold("Ruby")


def test_progress_within_level():
    progress = reward_progress(750)
    assert progress.level == "Silver"
    assert progress.next_level == "Gold"
    assert progress.next_level_threshold == 1000
    assert progress.points_to_next_level == 250
    assert progress.progress_percentage == 50


def test_progress_at_zero():
    progress = reward_progress(0)
    assert progress.level == "Bronze"
    assert progress.progress_percentage == 0
    assert progress.points_to_next_level == 500


def test_diamond_progress_is_pinned():
    progress = reward_progress(7000)
    assert progress.level == "Diamond"
    assert progress.next_level is None
    assert progress.next_level_threshold is None
    assert progress.points_to_next_level == 0
    assert progress.progress_percentage == DIAMOND_PROGRESS == 500


def test_progress_never_exceeds_hundred_below_diamond():
    for points in (0, 1, 499, 500, 1999, 4999):
        assert 0 <= reward_progress(points).progress_percentage <= 100


def test_award_points_updates_balance_and_ledger(client, db):
    user = signup_and_login(client, "ledger@example.com")

    award_points(db, user["id"], 300, TransactionType.REFERRAL, "Brought a friend")
    award_points(db, user["id"], 300, TransactionType.OTHER)

    reward = db.query(Reward).filter(Reward.user_id == user["id"]).one()
    assert reward.points == 600
    assert reward.badges == ["Silver"]
    assert db.query(RewardTransaction).filter(RewardTransaction.user_id == user["id"]).count() == 2


def test_award_points_requires_positive_amount(client, db):
    user = signup_and_login(client, "zero@example.com")
    with pytest.raises(ValueError):
        award_points(db, user["id"], 0, TransactionType.OTHER)
    assert db.query(RewardTransaction).count() == 0


def test_rewards_endpoint(client, donor, db):
    award_points(db, donor["id"], 1200, TransactionType.REFERRAL, "Referral bonus")

    response = client.get("/api/v1/rewards", headers=donor["headers"])
    assert response.status_code == 200
    data = response.json()
    assert data["progress"]["points"] == 1200
    assert data["progress"]["level"] == "Gold"
    assert data["progress"]["next_level"] == "Platinum"
    assert data["progress"]["progress_percentage"] == 20
    assert data["badges"] == ["Gold"]
    assert data["transactions"][0]["description"] == "Referral bonus"
