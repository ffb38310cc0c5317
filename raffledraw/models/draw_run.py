"""Database models recording published draws for later verification."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE


class DrawRun(Base):
    """One executed draw: the published seed and a fingerprint of its input."""

    __tablename__ = "draw_runs"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    seed: Mapped[str] = mapped_column(String(18), nullable=False)
    """Published seed in ``0x``-prefixed lower-case hexadecimal."""

    prng: Mapped[str] = mapped_column(String(50), nullable=False)
    """Tag of the shuffling algorithm the run was produced with."""

    participant_count: Mapped[int] = mapped_column(Integer, nullable=False)
    """Number of participant rows that went into the draw."""

    ticket_count: Mapped[int] = mapped_column(Integer, nullable=False)
    """Size of the ticket pool before shuffling."""

    participants_digest: Mapped[str] = mapped_column(String(64), nullable=False)
    """SHA-256 hex digest of the canonical participant rows."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    """Timestamp when the run was recorded."""

    winners: Mapped[list["DrawWinner"]] = relationship(
        back_populates="run",
        cascade="all, delete-orphan",
        order_by="DrawWinner.id",
    )
    """Every winner of the run, across all tiers."""

    def __init__(
        self,
        *,
        seed: str,
        prng: str,
        participant_count: int,
        ticket_count: int,
        participants_digest: str,
        winners: Optional[list["DrawWinner"]] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        self.seed = seed
        self.prng = prng
        self.participant_count = participant_count
        self.ticket_count = ticket_count
        self.participants_digest = participants_digest
        if winners is not None:
            self.winners = winners
        if created_at is not None:
            self.created_at = created_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<DrawRun(id={id}, seed={seed}, prng={prng})>".format(
            id=self.id,
            seed=self.seed,
            prng=self.prng,
        )

    def winner_groups(self) -> dict[str, list[int]]:
        """Return winner ids grouped by tier, each group ordered by position."""
        groups: dict[str, list[DrawWinner]] = {}
        for winner in self.winners:
            groups.setdefault(winner.tier, []).append(winner)
        return {
            tier: [w.participant_id for w in sorted(rows, key=lambda w: w.position)]
            for tier, rows in groups.items()
        }

    @classmethod
    def get_latest(cls, session: Session) -> Optional["DrawRun"]:
        """Return the most recently recorded run, if any."""
        stmt = select(cls).order_by(cls.created_at.desc(), cls.id.desc())
        return session.scalars(stmt).first()


class DrawWinner(Base):
    """A single winner of a :class:`DrawRun`."""

    __tablename__ = "draw_winners"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    run_id: Mapped[int] = mapped_column(
        ID_TYPE,
        ForeignKey("draw_runs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    """Foreign key referencing :class:`DrawRun`."""

    tier: Mapped[str] = mapped_column(String(50), nullable=False)
    """``grand``, ``consolation`` or the voucher group name."""

    position: Mapped[int] = mapped_column(Integer, nullable=False)
    """Zero-based draw order within the tier."""

    participant_id: Mapped[int] = mapped_column(ID_TYPE, nullable=False)
    """Identifier of the winning participant."""

    run: Mapped["DrawRun"] = relationship(back_populates="winners")
    """Relationship back to the owning run."""

    __table_args__ = (
        UniqueConstraint("run_id", "participant_id", name="uq_draw_winner_participant"),
        UniqueConstraint("run_id", "tier", "position", name="uq_draw_winner_slot"),
    )

    def __init__(
        self,
        *,
        tier: str,
        position: int,
        participant_id: int,
        run: Optional[DrawRun] = None,
    ) -> None:
        self.tier = tier
        self.position = position
        self.participant_id = participant_id
        if run is not None:
            self.run = run

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<DrawWinner(run_id={run}, tier={tier}, position={pos}, participant_id={pid})>".format(
            run=self.run_id,
            tier=self.tier,
            pos=self.position,
            pid=self.participant_id,
        )


__all__ = ["DrawRun", "DrawWinner"]
