"""Tests for event standings."""

from ethos.db.models import ScoreDiffLog, VoteLog, WinLog
from ethos.scoring.standings import compute_standings


def _ballot(make_score, match, judge, team_a, team_b, a, b):
    make_score(match, judge, team_a, criteria={"clarity": a[0], "depth": a[1]}, submitted=True)
    make_score(match, judge, team_b, criteria={"clarity": b[0], "depth": b[1]}, submitted=True)


def test_standings_combine_results_and_adjustments(db_session, make_event, make_teams, make_user,
                                                     make_match, make_score):
    event = make_event()
    team_a, team_b, team_c, team_d, team_e = make_teams(event, 5)
    judges = [make_user("judge") for _ in range(3)]

    first = make_match(event, team_a, team_b, status="completed", judges=judges)
    _ballot(make_score, first, judges[0], team_a, team_b, (8, 5), (5, 5))
    _ballot(make_score, first, judges[1], team_a, team_b, (9, 5), (5, 5))
    _ballot(make_score, first, judges[2], team_a, team_b, (5, 5), (7, 5))

    # Split decision with two judges, so the averaged third ballot is a tie
    second = make_match(event, team_c, team_d, status="completed", judges=judges[:2])
    _ballot(make_score, second, judges[0], team_c, team_d, (7, 5), (5, 5))
    _ballot(make_score, second, judges[1], team_c, team_d, (5, 5), (7, 5))

    unfinished = make_match(event, team_a, team_c, round_number=2, status="final_scoring", judges=judges[:1])
    _ballot(make_score, unfinished, judges[0], team_a, team_c, (0, 0), (10, 10))
    make_match(event, team_e, None, status="completed")

    db_session.add_all([
        WinLog(event_id=event.id, team_id=team_b.id, wins_adj=1, admin_id="1", admin_name="Ada"),
        VoteLog(event_id=event.id, team_id=team_d.id, adjustment=1.0, admin_id="1", admin_name="Ada"),
        ScoreDiffLog(event_id=event.id, team_id=team_c.id, adjustment=2.5, admin_id="1", admin_name="Ada"),
    ])
    db_session.flush()

    standings = compute_standings(db_session, event.id)
    by_team = {s.team_id: s for s in standings}

    assert [s.team_id for s in standings[:4]] == [team_a.id, team_b.id, team_d.id, team_c.id]
    assert [s.rank for s in standings] == [1, 2, 3, 4, 5]

    assert (by_team[team_a.id].wins, by_team[team_a.id].votes, by_team[team_a.id].differential) == (1, 2.0, 5.0)
    assert (by_team[team_b.id].wins, by_team[team_b.id].losses) == (1, 1)
    assert by_team[team_c.id].ties == 1
    assert by_team[team_c.id].differential == 2.5
    assert by_team[team_d.id].votes == 2.5
    assert by_team[team_a.id].matches_played == 1
    assert by_team[team_e.id].matches_played == 0
    assert by_team[team_c.id].to_dict()["win_points"] == 0.5
