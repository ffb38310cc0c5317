from __future__ import annotations

import unittest
from dataclasses import replace

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from raffledraw.models import Base, DrawRun, DrawWinner
from raffledraw.raffle import (
    DrawConfig,
    DrawVerificationError,
    Participant,
    PoolExhaustedError,
    VoucherGroup,
)
from raffledraw.workflows import (
    participants_digest,
    record_draw_run,
    render_report,
    run_draw,
    verify_draw_run,
)

GOLDEN_SEED = 0xDEADBEEF


def golden_participants() -> list[Participant]:
    return [
        Participant(
            id=pid,
            tickets=pid % 7 + 1,
            submitted=pid % 5 != 0,
            won_prize=pid % 11 == 0,
        )
        for pid in range(1, 601)
    ]


class RunDrawTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.participants = golden_participants()
        cls.by_id = {p.id: p for p in cls.participants}
        cls.outcome = run_draw(cls.participants, GOLDEN_SEED)

    def test_golden_winners(self) -> None:
        outcome = self.outcome
        self.assertEqual(outcome.grand, (167, 404, 320))
        self.assertEqual(
            outcome.consolation,
            (54, 73, 527, 409, 174, 123, 379, 67, 79, 141,
             166, 579, 551, 271, 291, 326, 568, 328, 439),
        )
        self.assertEqual(
            outcome.vouchers[:10], (297, 11, 410, 265, 45, 451, 594, 370, 550, 290)
        )
        self.assertEqual(outcome.voucher_group("GF10")[-1], 555)
        self.assertEqual(outcome.voucher_group("FP5")[0], 564)
        self.assertEqual(outcome.voucher_group("FP5")[-1], 506)

    def test_counts(self) -> None:
        self.assertEqual(len(self.outcome.grand), 3)
        self.assertEqual(len(self.outcome.consolation), 19)
        self.assertEqual(len(self.outcome.voucher_group("GF10")), 49)
        self.assertEqual(len(self.outcome.voucher_group("FP5")), 356)

    def test_no_participant_wins_twice(self) -> None:
        winners = self.outcome.all_winners()
        self.assertEqual(len(winners), len(set(winners)))

    def test_consolation_winners_are_eligible(self) -> None:
        for pid in self.outcome.consolation:
            self.assertTrue(self.by_id[pid].submitted, pid)
            self.assertFalse(self.by_id[pid].won_prize, pid)

    def test_vouchers_waive_eligibility(self) -> None:
        ineligible = [
            pid for pid in self.outcome.vouchers if not self.by_id[pid].consolation_eligible
        ]
        self.assertTrue(ineligible)
        # 297 and 11 both won before; 410 never submitted.
        self.assertEqual(self.outcome.vouchers[:3], (297, 11, 410))

    def test_deterministic(self) -> None:
        again = run_draw(self.participants, GOLDEN_SEED)
        self.assertEqual(again, self.outcome)
        other = run_draw(self.participants, GOLDEN_SEED + 1)
        self.assertNotEqual(other.grand, self.outcome.grand)

    def test_heavy_participant_takes_first_grand_prize(self) -> None:
        participants = [
            Participant(id=pid, tickets=tickets, submitted=True, won_prize=False)
            for pid, tickets in enumerate([1, 1, 1, 1, 1000], start=1)
        ]
        config = DrawConfig(grand_prizes=3, consolation_prizes=0, voucher_groups=())
        outcome = run_draw(participants, 0x1, config)
        self.assertEqual(outcome.grand, (5, 3, 1))

    def test_too_few_participants(self) -> None:
        with self.assertRaises(PoolExhaustedError):
            run_draw(golden_participants()[:100], GOLDEN_SEED)

    def test_render_report(self) -> None:
        report = render_report("{{ANY}} {{ANY}} {{ANY}}", self.outcome)
        self.assertEqual(report, "#167 #404 #320")


class ParticipantsDigestTests(unittest.TestCase):
    def test_digest_tracks_every_field(self) -> None:
        base = golden_participants()[:5]
        digest = participants_digest(base)
        self.assertEqual(len(digest), 64)
        self.assertEqual(digest, participants_digest(list(base)))
        changed = [replace(base[0], won_prize=not base[0].won_prize)] + base[1:]
        self.assertNotEqual(digest, participants_digest(changed))
        self.assertNotEqual(digest, participants_digest(list(reversed(base))))


class DrawRunRecordTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )
        self.participants = [
            Participant(id=pid, tickets=pid % 3 + 1, submitted=pid % 4 != 0, won_prize=False)
            for pid in range(1, 21)
        ]
        self.config = DrawConfig(
            grand_prizes=2,
            consolation_prizes=3,
            voucher_groups=(VoucherGroup("GF10", 2), VoucherGroup("FP5", 4)),
        )

    def tearDown(self) -> None:
        self.engine.dispose()

    def _record(self, session, seed: int = 0x42) -> DrawRun:
        outcome = run_draw(self.participants, seed, self.config)
        return record_draw_run(session, self.participants, seed, outcome)

    def test_record_persists_run_and_winners(self) -> None:
        with self.Session.begin() as session:
            run = self._record(session)
            run_id = run.id
            outcome = run_draw(self.participants, 0x42, self.config)

        with self.Session() as session:
            stored = session.get(DrawRun, run_id)
            assert stored is not None
            self.assertEqual(stored.seed, "0x42")
            self.assertEqual(stored.prng, "chacha12-rand0.8")
            self.assertEqual(stored.participant_count, 20)
            self.assertEqual(stored.ticket_count, sum(p.tickets for p in self.participants))
            self.assertEqual(stored.participants_digest, participants_digest(self.participants))
            self.assertEqual(
                stored.winner_groups(),
                {tier: list(ids) for tier, ids in outcome.groups().items()},
            )
            count = len(session.scalars(select(DrawWinner).where(DrawWinner.run_id == run_id)).all())
            self.assertEqual(count, self.config.total_winners)

    def test_get_latest(self) -> None:
        with self.Session.begin() as session:
            self.assertIsNone(DrawRun.get_latest(session))
            self._record(session, 1)
            second = self._record(session, 2)
            latest = DrawRun.get_latest(session)
            assert latest is not None
            self.assertEqual(latest.id, second.id)

    def test_verify_round_trip(self) -> None:
        with self.Session.begin() as session:
            run_id = self._record(session).id

        with self.Session() as session:
            outcome = verify_draw_run(session, run_id, self.participants, self.config)
            self.assertEqual(outcome, run_draw(self.participants, 0x42, self.config))

    def test_verify_detects_changed_participants(self) -> None:
        with self.Session.begin() as session:
            run_id = self._record(session).id

        tampered = [replace(self.participants[0], tickets=50)] + self.participants[1:]
        with self.Session() as session:
            with self.assertRaises(DrawVerificationError):
                verify_draw_run(session, run_id, tampered, self.config)

    def test_verify_detects_changed_winners(self) -> None:
        with self.Session.begin() as session:
            run = self._record(session)
            run_id = run.id
            grand = sorted(
                (w for w in run.winners if w.tier == "grand"), key=lambda w: w.position
            )
            grand[0].position, grand[1].position = 99, 0
            session.flush()
            grand[0].position = 1

        with self.Session() as session:
            with self.assertRaises(DrawVerificationError) as ctx:
                verify_draw_run(session, run_id, self.participants, self.config)
            self.assertIn("grand", str(ctx.exception))

    def test_verify_unknown_run(self) -> None:
        with self.Session() as session:
            with self.assertRaises(LookupError):
                verify_draw_run(session, 404, self.participants, self.config)


if __name__ == "__main__":
    unittest.main()
