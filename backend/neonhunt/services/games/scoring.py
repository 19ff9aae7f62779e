from typing import Iterable, List

from neonhunt.models import Claim, Keyword, Team


def team_score(team_id: int, claims: Iterable[Claim], keywords: Iterable[Keyword]) -> int:
    """Sum the points of every keyword the team holds a claim on.

    Claims whose keyword is not in ``keywords`` count for nothing.
    """
    points_by_keyword = {k.id: k.points for k in keywords}
    return sum(points_by_keyword.get(c.keyword_id, 0) or 0 for c in claims if c.team_id == team_id)


def is_claimed_by_team(keyword_id: int, team_id: int, claims: Iterable[Claim]) -> bool:
    return any(c.keyword_id == keyword_id and c.team_id == team_id for c in claims)


def build_scoreboard(teams: Iterable[Team], keywords: Iterable[Keyword], claims: Iterable[Claim]) -> List[dict]:
    keywords = list(keywords)
    claims = list(claims)
    board = []
    for team in teams:
        board.append({
            'team_id': team.id,
            'name': team.name,
            'score': team_score(team.id, claims, keywords),
            'claimed_keyword_ids': [c.keyword_id for c in claims if c.team_id == team.id],
        })
    return board
