"""Statistics and leaderboard API views."""

from rest_framework.response import Response
from rest_framework.views import APIView

from chainheart.api.dependencies import get_services
from chainheart.api.serializers import LeaderboardQuerySerializer, validated
from chainheart.api.views import dump


class PlatformStatsView(APIView):
    """Platform-wide statistics.

    GET /api/statistics

    Returns donation count, total, distinct donors and average, plus the
    number of campaigns, approved charities and collected platform fees.
    """

    def get(self, request):
        stats = get_services().aggregation.platform_statistics()
        return Response(dump(stats))


class DonorLeaderboardView(APIView):
    """Donor leaderboard by total donated.

    GET /api/statistics/leaderboard

    Query params:
    - limit: number of donors to return (default: 10, max: 100)
    """

    def get(self, request):
        limit = validated(LeaderboardQuerySerializer(data=request.query_params))["limit"]
        standings = get_services().aggregation.donor_leaderboard(limit)
        return Response({
            'count': len(standings),
            'limit': limit,
            'results': dump(standings),
        })
