"""Adversarial evolution: random pairings, the stronger entity teaches the weaker.

Pairs are formed from a shuffled slice; an odd entity out sits the round out.
The winner is the higher competitive score (ties go to the first of the pair)
and is boosted in proportion to its margin. The loser absorbs every winner
skill it lacks or holds lower, and speeds up its learning velocity.
"""

from __future__ import annotations

from typing import Sequence

from pydantic import BaseModel

from hyperevo.evolution.modes.base import EvolutionResult, ModeContext, ModeOutcome
from hyperevo.evolution.scoring import clamp, competitive_score
from hyperevo.evolution.tuning import EvolutionConfig
from hyperevo.exceptions import HyperEvoError
from hyperevo.retry import with_retry
from hyperevo.store.base import Entity, EntityUpdate, LearningEvent, Relationship


class Bout(BaseModel):
    """Outcome of one pairing, before anything is written."""

    winner: Entity
    loser: Entity
    margin: float
    winner_boost: float
    loser_learning: float
    winner_update: EntityUpdate
    loser_update: EntityUpdate


def pair_up(entities: Sequence[Entity]) -> list[tuple[Entity, Entity]]:
    return [(entities[i], entities[i + 1]) for i in range(0, len(entities) - 1, 2)]


def decide(a: Entity, b: Entity, intensity: float, cfg: EvolutionConfig) -> Bout:
    score_a = competitive_score(a)
    score_b = competitive_score(b)
    winner, loser = (a, b) if score_a >= score_b else (b, a)
    margin = abs(score_a - score_b)

    winner_boost = intensity * cfg.adversarial_winner_boost_base * (1 + margin)
    loser_learning = intensity * cfg.adversarial_loser_learning

    winner_specs = {k: v + winner_boost * 0.1 for k, v in winner.task_specializations.items()}
    loser_specs = dict(loser.task_specializations)
    for skill_type, value in winner.task_specializations.items():
        current = loser.skill(skill_type)
        if value > current:
            loser_specs[skill_type] = current + loser_learning

    return Bout(
        winner=winner,
        loser=loser,
        margin=margin,
        winner_boost=winner_boost,
        loser_learning=loser_learning,
        winner_update=EntityUpdate(
            id=winner.id,
            task_specializations=winner_specs,
            success_rate=winner.success_rate + winner_boost * 0.05,
        ),
        loser_update=EntityUpdate(
            id=loser.id,
            task_specializations=loser_specs,
            learning_velocity=loser.learning_velocity + loser_learning * 0.1,
        ),
    )


async def run(entities: Sequence[Entity], ctx: ModeContext) -> ModeOutcome:
    cfg = ctx.config
    intensity = ctx.intensity
    shuffled = list(entities)
    ctx.rng.shuffle(shuffled)
    pairs = pair_up(shuffled)
    await ctx.log.info("adversarial.start", competitions=len(pairs), intensity=intensity)

    outcome = ModeOutcome()
    updates: list[EntityUpdate] = []
    events: list[LearningEvent] = []
    relationships: list[Relationship] = []

    for a, b in pairs:
        bout = decide(a, b, intensity, cfg)
        winner, loser = bout.winner, bout.loser
        updates.extend([bout.winner_update, bout.loser_update])

        relationships.append(Relationship(
            entity_a_id=winner.id,
            entity_b_id=loser.id,
            relationship_type="competitive",
            synergy_score=0.5 + bout.margin,
            metadata={"competition_result": "winner_a", "margin": bout.margin},
        ))
        events.append(LearningEvent(
            entity_id=winner.id,
            event_type="competition_won",
            event_data={"opponent": loser.id, "margin": bout.margin, "boost": bout.winner_boost},
            impact_score=clamp(bout.winner_boost),
        ))
        events.append(LearningEvent(
            entity_id=loser.id,
            event_type="competition_learning",
            event_data={"mentor": winner.id, "absorbed": bout.loser_learning},
            impact_score=clamp(bout.loser_learning),
        ))

        outcome.results.append(EvolutionResult(
            entity_id=winner.id,
            entity_name=winner.name,
            previous_score=winner.success_rate,
            new_score=clamp(winner.success_rate + bout.winner_boost * 0.05),
            evolution_gain=bout.winner_boost,
            competitions_won=1,
        ))
        outcome.results.append(EvolutionResult(
            entity_id=loser.id,
            entity_name=loser.name,
            previous_score=loser.success_rate,
            new_score=clamp(loser.success_rate + bout.loser_learning * 0.02),
            evolution_gain=bout.loser_learning,
            knowledge_transferred=len(winner.task_specializations),
        ))
        outcome.competitions += 1

    await ctx.persist(outcome, updates, events=events)

    for relationship in relationships:
        try:
            await with_retry(
                lambda relationship=relationship: ctx.store.upsert_relationship(relationship),
                cfg.db_max_retries,
                cfg.db_initial_retry_delay_s,
                rng=ctx.rng,
                sleep=ctx.sleep,
            )
        except HyperEvoError as e:
            await ctx.log.error(
                "adversarial.relationship_failed", error=e, pair=relationship.pair_key,
            )

    await ctx.log.info("adversarial.complete", competitions=outcome.competitions)
    return outcome
