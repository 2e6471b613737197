# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Sports fixtures and matches. Completing a match credits the
winner on the team points ledger exactly once.
"""

from datetime import timedelta
from typing import Any, Dict, List, Optional

from secons.core.logging import get_logger
from secons.core.timeutil import utcnow
from secons.metrics.prometheus import MATCHES_COMPLETED
from secons.models.domain import ADMIN_ROLES
from secons.repositories.event_repository import EventRepository
from secons.repositories.match_repository import MatchRepository
from secons.repositories.team_repository import TeamRepository
from secons.repositories.user_repository import UserRepository
from secons.services.audit_service import AuditAction, AuditService
from secons.services.notification_service import NotificationService
from secons.services.team_service import TeamService

logger = get_logger(__name__)

WIN_POINTS = 1
DRAW = "draw"
# Match status -> parent event status
EVENT_STATUS_FOR = {"live": "ongoing", "completed": "completed", "scheduled": "published"}


def decide_winner(match: Dict[str, Any], score1: int, score2: int,
                  chosen: Optional[str] = None) -> Optional[str]:
    """Explicit choice first, else the higher score. None means a draw."""
    if chosen == DRAW:
        return None
    if chosen:
        if chosen not in (match["team1"]["id"], match["team2"]["id"]):
            raise ValueError("Winner must be one of the two teams")
        return chosen
    if score1 > score2:
        return match["team1"]["id"]
    if score2 > score1:
        return match["team2"]["id"]
    return None


class MatchService:
    def __init__(self, repo: MatchRepository, event_repo: EventRepository,
                 team_repo: TeamRepository, teams: TeamService, user_repo: UserRepository,
                 notifications: NotificationService, audit: AuditService) -> None:
        self._repo = repo
        self._events = event_repo
        self._team_repo = team_repo
        self._teams = teams
        self._users = user_repo
        self._notifications = notifications
        self._audit = audit

    # ── Queries ──

    def list_matches(self, status: Optional[str] = None,
                     sport: Optional[str] = None) -> List[Dict[str, Any]]:
        return self._repo.list_matches(status, sport)

    def get_match(self, match_id: str) -> Dict[str, Any]:
        match = self._repo.get_match(match_id)
        if match is None:
            raise KeyError("Match not found")
        return match

    # ── Commands ──

    def create(self, user: Dict[str, Any], entry: Dict[str, Any]) -> Dict[str, Any]:
        self._require_admin(user)
        if entry["team1_id"] == entry["team2_id"]:
            raise ValueError("A team cannot play itself")
        for key in ("team1_id", "team2_id"):
            if self._team_repo.get_team(entry[key]) is None:
                raise ValueError(f"Unknown team {entry[key]}")

        entry = dict(entry)
        if entry.get("fixture_id"):
            fixture = self._repo.get_fixture(entry["fixture_id"])
            if fixture is None:
                raise KeyError("Fixture not found")
            entry["event_id"] = entry.get("event_id") or fixture["event_id"]
        if entry.get("event_id"):
            if self._events.get_event(entry["event_id"]) is None:
                raise KeyError("Event not found")
        else:
            entry["event_id"] = self._sport_event(user, entry)["id"]

        match = self._repo.create_match(entry, user["uid"], "Match Initialized")
        self._audit.record(user, AuditAction.SCORE_ENTERED, "match", match["id"],
                           {"sport": match["sport_name"], "score": [match["score_team1"],
                                                                    match["score_team2"]]})
        logger.info("Match created: id=%s, sport=%s, event=%s",
                    match["id"], match["sport_name"], match["event_id"])
        return match

    def update(self, user: Dict[str, Any], match_id: str,
               fields: Dict[str, Any]) -> Dict[str, Any]:
        self._require_admin(user)
        current = self._repo.get_match(match_id)
        if current is None:
            raise KeyError("Match not found")

        score_change = "score_team1" in fields or "score_team2" in fields
        if current["status"] == "completed" and score_change:
            raise ValueError("Match is finalized. Scores cannot be modified.")

        score1 = fields.get("score_team1", current["score_team1"])
        score2 = fields.get("score_team2", current["score_team2"])
        updates = {k: v for k, v in fields.items() if k not in ("winner", "note")}
        completing = fields.get("status") == "completed" and not current["points_awarded"]
        winner_id = None
        if completing:
            winner_id = decide_winner(current, score1, score2, fields.get("winner"))
            updates["winner_id"] = winner_id
        elif fields.get("winner"):
            updates["winner_id"] = decide_winner(current, score1, score2, fields["winner"])

        match = self._repo.update_match(
            match_id, updates,
            entered_by=user["uid"] if score_change else None,
            reason=fields.get("note") or "Score Update",
        )
        if score_change:
            self._audit.record(user, AuditAction.SCORE_UPDATED, "match", match_id,
                               {"score": [score1, score2], "note": fields.get("note")})
        if completing and self._repo.claim_points(match_id):
            self._award_win(user, match, winner_id)

        if fields.get("status"):
            self._sync_event_status(match, fields["status"])
        if score_change or fields.get("status"):
            body = (f"Match status changed to {fields['status']}" if fields.get("status")
                    else f"Score updated: {match['score_team1']} - {match['score_team2']}")
            self._notifications.notify(
                self._users.find_active_uids(exclude_uid=user["uid"]), "system",
                f"Match Update: {match['team1']['name']} vs {match['team2']['name']}",
                body, link="/sports",
            )
        logger.info("Match updated: id=%s, fields=%s", match_id, sorted(fields))
        return self._repo.get_match(match_id)

    def delete(self, user: Dict[str, Any], match_id: str) -> None:
        self._require_admin(user)
        if not self._repo.delete_match(match_id):
            raise KeyError("Match not found")
        logger.info("Match deleted: id=%s", match_id)

    def bulk_import(self, user: Dict[str, Any], event_id: Optional[str],
                    fixtures: List[Dict[str, Any]],
                    matches: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Fixtures first; matches attach to the first fixture created or a default one."""
        self._require_admin(user)
        results: Dict[str, Any] = {"fixtures": 0, "matches": 0, "errors": []}

        primary = None
        for number, row in enumerate(fixtures, start=1):
            target = row.get("event_id") or event_id
            if not target or self._events.get_event(target) is None:
                results["errors"].append(f"Fixture {number}: event not found")
                continue
            fixture = self._repo.create_fixture(target, row["format"], user["uid"])
            results["fixtures"] += 1
            primary = primary or fixture

        if matches and primary is None and event_id:
            if self._events.get_event(event_id) is not None:
                primary = self._repo.create_fixture(event_id, "custom", user["uid"])

        team_ids = {t["name"].strip().lower(): t["id"] for t in self._team_repo.list_teams()}
        rows: List[Dict[str, Any]] = []
        for row in matches:
            team1 = team_ids.get(row["team1_name"].strip().lower())
            team2 = team_ids.get(row["team2_name"].strip().lower())
            if not team1 or not team2 or primary is None:
                results["errors"].append(
                    f"Could not resolve teams for match: {row['team1_name']} vs {row['team2_name']}"
                )
                continue
            rows.append({
                **row, "team1_id": team1, "team2_id": team2,
                "fixture_id": primary["id"], "event_id": primary["event_id"],
                "scheduled_at": row.get("scheduled_at") or utcnow(),
            })
        results["matches"] = self._repo.create_matches(rows)
        logger.info("Sports bulk import: fixtures=%d, matches=%d, errors=%d",
                    results["fixtures"], results["matches"], len(results["errors"]))
        return results

    # ── Private ──

    def _award_win(self, user: Dict[str, Any], match: Dict[str, Any],
                   winner_id: Optional[str]) -> None:
        MATCHES_COMPLETED.labels(outcome="win" if winner_id else "draw").inc()
        if winner_id is None:
            logger.info("Match %s completed as a draw, no points awarded", match["id"])
            return
        self._teams.award_points(
            user, winner_id, WIN_POINTS, 1, match["event_id"],
            f"Won Sports Match ({match['sport_name']})",
        )

    def _sync_event_status(self, match: Dict[str, Any], status: str) -> None:
        event_status = EVENT_STATUS_FOR.get(status)
        if event_status is None:
            return
        if status == "completed" and self._repo.has_live_match(match["event_id"], match["id"]):
            return
        self._events.update_event(match["event_id"], {"status": event_status})

    def _sport_event(self, user: Dict[str, Any], entry: Dict[str, Any]) -> Dict[str, Any]:
        """Find or create the catalogue event that holds matches of this sport."""
        sport = entry["sport_name"].strip()
        event = self._events.find_by_title(sport, "sports")
        if event is not None:
            return event
        start_at = entry.get("scheduled_at") or utcnow()
        return self._events.create_event({
            "title": sport,
            "category": "sports",
            "description": f"Automated scoring container for {sport} circuits.",
            "venue": entry.get("venue") or "Main Grounds",
            "start_at": start_at,
            "end_at": start_at + timedelta(hours=2),
            "status": "ongoing",
            "jga_domain": "sports",
        }, user["uid"])

    @staticmethod
    def _require_admin(user: Dict[str, Any]) -> None:
        if user["role"] not in ADMIN_ROLES:
            raise PermissionError("Only GA or JGA can manage matches")
