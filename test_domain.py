# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Unit tests for the pure domain rules: targeting, authority, tokens, codes."""
import itertools

import pytest

from secons.models.domain import (
    AllUsers, RoleDomain, RoleOnly, VALID_DOMAINS, VALID_ROLES,
    has_authority, parse_group_token, parse_group_tokens,
)
from secons.middleware import endpoint_label
from secons.services.access_codes import (
    ACCESS_CODE_ALPHABET, generate_access_code, normalise_access_code,
)
from secons.services.announcement_service import notification_preview
from secons.services.targeting import is_targeted
from secons.services.invitation_service import invitation_email
from secons.services.team_service import default_roster

DOMAINS_OR_NONE = list(VALID_DOMAINS) + [None]


# ============================================
# Audience targeting
# ============================================
class TestIsTargeted:
    @pytest.mark.parametrize("role,domain", itertools.product(VALID_ROLES, DOMAINS_OR_NONE))
    def test_empty_targets_reach_everyone(self, role, domain):
        assert is_targeted(role, domain, [], []) is True

    @pytest.mark.parametrize("role", VALID_ROLES)
    def test_roles_only_is_role_membership(self, role):
        targets = {"animator", "volunteer"}
        for domain in DOMAINS_OR_NONE:
            assert is_targeted(role, domain, targets, []) is (role in targets)

    def test_domains_only_requires_matching_domain(self):
        assert is_targeted("student", "sports", [], ["sports"]) is True
        assert is_targeted("ga", "literary", [], ["sports"]) is False

    def test_domains_only_excludes_users_without_domain(self):
        assert is_targeted("ga", None, [], ["sports", "club"]) is False

    def test_both_dimensions_are_conjunctive(self):
        assert is_targeted("jga", "sports", {"jga"}, {"sports"}) is True
        assert is_targeted("jga", "literary", {"jga"}, {"sports"}) is False
        assert is_targeted("animator", "sports", {"jga"}, {"sports"}) is False

    def test_accepts_any_iterable(self):
        assert is_targeted("volunteer", "club", ("volunteer",), iter(["club"])) is True


# ============================================
# Role authority
# ============================================
class TestHasAuthority:
    def test_ga_outranks_student(self):
        assert has_authority("ga", "student") is True

    def test_student_does_not_outrank_ga(self):
        assert has_authority("student", "ga") is False

    @pytest.mark.parametrize("role", VALID_ROLES)
    def test_equal_roles_have_no_authority(self, role):
        assert has_authority(role, role) is False

    def test_jga_outranks_animator_but_not_ga(self):
        assert has_authority("jga", "animator") is True
        assert has_authority("jga", "ga") is False

    def test_unknown_role_raises(self):
        with pytest.raises(KeyError):
            has_authority("dean", "student")


# ============================================
# Attendee group tokens
# ============================================
class TestGroupTokens:
    def test_all(self):
        assert parse_group_token("all") == AllUsers()

    def test_role_only(self):
        assert parse_group_token("jga_all") == RoleOnly("jga")
        assert parse_group_token("volunteer_all") == RoleOnly("volunteer")

    def test_role_domain(self):
        assert parse_group_token("animator_sports") == RoleDomain("animator", "sports")

    def test_domain_with_underscores(self):
        assert parse_group_token("jga_performing_creative_arts") == \
            RoleDomain("jga", "performing_creative_arts")

    @pytest.mark.parametrize("token", [
        "", "everyone", "student_all", "ga_sports", "jga_", "jga_cooking", "_all", "jga",
    ])
    def test_unknown_tokens_are_dropped(self, token):
        assert parse_group_token(token) is None

    def test_tokens_are_case_and_space_insensitive(self):
        assert parse_group_token("  JGA_Sports ") == RoleDomain("jga", "sports")

    def test_parse_many_dedupes_and_skips_unknown(self):
        parsed = parse_group_tokens(["jga_all", "bogus", "jga_all", "animator_club"])
        assert parsed == [RoleOnly("jga"), RoleDomain("animator", "club")]

    def test_parse_many_handles_none(self):
        assert parse_group_tokens(None) == []


# ============================================
# Access codes
# ============================================
class TestAccessCodes:
    def test_alphabet_excludes_lookalikes(self):
        for ch in "IO01":
            assert ch not in ACCESS_CODE_ALPHABET
        assert len(set(ACCESS_CODE_ALPHABET)) == len(ACCESS_CODE_ALPHABET)

    def test_codes_have_length_six_and_valid_characters(self):
        for _ in range(500):
            code = generate_access_code()
            assert len(code) == 6
            assert set(code) <= set(ACCESS_CODE_ALPHABET)
            assert not set(code) & set("IO01")

    def test_custom_length(self):
        assert len(generate_access_code(8)) == 8

    def test_codes_vary(self):
        assert len({generate_access_code() for _ in range(50)}) > 1

    def test_normalise(self):
        assert normalise_access_code("  abc234 ") == "ABC234"
        assert normalise_access_code(None) == ""


# ============================================
# Small helpers
# ============================================
class TestHelpers:
    def test_notification_preview_strips_html_and_truncates(self):
        body = "<p><b>Big</b> news</p>" + "x" * 200
        preview = notification_preview(body)
        assert preview.startswith("Big news")
        assert "<" not in preview
        assert len(preview) == 100

    def test_default_roster_has_eighteen_unique_teams(self):
        roster = default_roster()
        assert len(roster) == 18
        assert len({(t["group"], t["semester"]) for t in roster}) == 18
        assert {"COM2", "PROF4", "HUM6"} <= {t["name"] for t in roster}

    def test_endpoint_label_collapses_ids(self):
        assert endpoint_label("/api/v1/teams/3f2a/points") == "/api/v1/teams/{id}/points"
        assert endpoint_label("/api/v1/sports/leaderboard") == "/api/v1/sports/leaderboard"
        assert endpoint_label("/") == "/"

    def test_invitation_email_mentions_code_and_scope(self):
        subject, html = invitation_email("Vik", "Grace", "jga", "sports", "ABC234")
        assert subject == "You're invited to join SECONS as JGA (sports)"
        assert "ABC234" in html
        assert "login?code=ABC234" in html
