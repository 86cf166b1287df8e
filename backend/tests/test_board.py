from __future__ import annotations
import asyncio
from datetime import timedelta
import pytest

from haddaf.services.board import load_board, submission_snapshots
from haddaf.services.ratings import submit_rating
from conftest import add_challenge, add_submission, now


@pytest.mark.asyncio
async def test_board_pins_top_three(sessionmaker):
    ch = await add_challenge(sessionmaker)
    t = now() - timedelta(hours=1)
    low = await add_submission(sessionmaker, ch, "u1", created_at=t, stars=1, count=1)
    tie_late = await add_submission(sessionmaker, ch, "u2", created_at=t + timedelta(minutes=2), stars=4, count=1)
    tie_early = await add_submission(sessionmaker, ch, "u3", created_at=t + timedelta(minutes=1), stars=4, count=1)
    newest = await add_submission(sessionmaker, ch, "u4", created_at=t + timedelta(minutes=3))
    best = await add_submission(sessionmaker, ch, "u5", created_at=t + timedelta(minutes=4), stars=9, count=2)

    async with sessionmaker() as s:
        snap = await load_board(s, ch)

    assert [x.id for x in snap.submissions] == [best, newest, tie_late, tie_early, low]
    assert [x.id for x in snap.top] == [best, tie_early, tie_late]
    assert [x.id for x in snap.pinned] == [best, tie_early, tie_late, newest, low]
    assert snap.rank_of(tie_late) == 3
    assert snap.rank_of(low) is None


@pytest.mark.asyncio
async def test_back_to_back_uploads_tie_in_upload_order(sessionmaker):
    # Stored timestamps keep sub-second precision
    for round_ in range(10):
        ch = await add_challenge(sessionmaker, title=f"Rondo {round_}")
        first = await add_submission(sessionmaker, ch, "u1")
        second = await add_submission(sessionmaker, ch, "u2")

        async with sessionmaker() as s:
            snap = await load_board(s, ch)

        assert [x.id for x in snap.top] == [first, second]
        assert [x.id for x in snap.submissions] == [second, first]


@pytest.mark.asyncio
async def test_board_is_scoped_to_challenge(sessionmaker):
    ch1 = await add_challenge(sessionmaker)
    ch2 = await add_challenge(sessionmaker, title="Juggling")
    await add_submission(sessionmaker, ch1, "u1")
    async with sessionmaker() as s:
        snap = await load_board(s, ch2)
    assert snap.submissions == [] and snap.top == [] and snap.pinned == []


@pytest.mark.asyncio
async def test_snapshots_restart_from_full_state(sessionmaker):
    ch = await add_challenge(sessionmaker)
    await add_submission(sessionmaker, ch, "u1")

    first = [s async for s in submission_snapshots(sessionmaker, ch, interval=0.01, max_snapshots=1)]
    again = [s async for s in submission_snapshots(sessionmaker, ch, interval=0.01, max_snapshots=1)]
    assert len(first) == len(again) == 1
    assert first[0].fingerprint() == again[0].fingerprint()


@pytest.mark.asyncio
async def test_snapshot_emitted_on_change_only(sessionmaker):
    ch = await add_challenge(sessionmaker)
    sid = await add_submission(sessionmaker, ch, "u1")

    stream = submission_snapshots(sessionmaker, ch, interval=0.01)
    try:
        first = await stream.__anext__()
        assert first.submissions[0].total_points == 0

        pending = asyncio.ensure_future(stream.__anext__())
        await asyncio.sleep(0.05)
        # Nothing changed yet, so nothing was emitted
        assert not pending.done()

        await submit_rating(sessionmaker, sid, "rater-1", 3)
        second = await asyncio.wait_for(pending, timeout=5)
        assert second.submissions[0].total_points == 15
        assert [x.id for x in second.top] == [sid]
    finally:
        await stream.aclose()
