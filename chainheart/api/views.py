"""API views over the ledger, campaign registry and charity lifecycle."""

from typing import Any

from django.http import HttpResponse, JsonResponse
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from chainheart.api.dependencies import get_services
from chainheart.api.serializers import (
    AdminStatusSerializer,
    CharityRegistrationSerializer,
    CharityUpdateSerializer,
    TransactionStatusSerializer,
    to_upload,
    validated,
)
from chainheart.log import get_logger
from chainheart.schemas import CharityRequestRecord
from chainheart.services.storage import LocalFileStorage
from chainheart.utils.formatting import short_hash

logger = get_logger(__name__)


def dump(value: Any) -> Any:
    """Render pydantic records (or lists of them) with camelCase keys."""
    if isinstance(value, list):
        return [dump(item) for item in value]
    return value.model_dump(mode="json", by_alias=True)


def charity_payload(record: CharityRequestRecord, storage: LocalFileStorage) -> dict:
    """Charity request as returned to clients, with public file URLs."""
    payload = dump(record)
    payload["logoUrl"] = storage.public_url(record.logo_url)
    payload["verificationDocumentUrl"] = storage.public_url(record.verification_document_url)
    return payload


# =============================================================================
# Donations
# =============================================================================

class DonationCreateView(APIView):
    """POST /api/donations"""

    def post(self, request):
        record = get_services().store.record_donation(request.data)
        return Response(dump(record), status=status.HTTP_201_CREATED)


class DonorDonationsView(APIView):
    """GET /api/donations/user/{wallet}"""

    def get(self, request, wallet):
        return Response(dump(get_services().store.donations_by_donor(wallet)))


class CharityDonationsView(APIView):
    """GET /api/donations/charity/{id}"""

    def get(self, request, charity_id):
        return Response(dump(get_services().store.donations_by_charity(charity_id)))


class CampaignDonationsView(APIView):
    """GET /api/donations/campaign/{id}"""

    def get(self, request, campaign_id):
        return Response(dump(get_services().store.donations_by_campaign(campaign_id)))


class DonationReceiptView(APIView):
    """GET /api/donations/receipt/{txHash}

    Responds with a JSON ``null`` body when the donation is unknown.
    """

    def get(self, request, tx_hash):
        record = get_services().store.find_donation(tx_hash)
        if record is None:
            return JsonResponse(None, safe=False)
        return Response(dump(record))


class DonationExportView(APIView):
    """GET /api/donations/export/{wallet} - CSV history download."""

    def get(self, request, wallet):
        content = get_services().aggregation.export_donation_history(wallet)
        response = HttpResponse(content, content_type="text/csv")
        response["Content-Disposition"] = f'attachment; filename="donation-history-{short_hash(wallet)}.csv"'
        return response


class DonationCertificateView(APIView):
    """GET /api/donations/certificate/{txHash} - PDF certificate download."""

    def get(self, request, tx_hash):
        pdf = get_services().aggregation.render_certificate(tx_hash)
        response = HttpResponse(pdf, content_type="application/pdf")
        response["Content-Disposition"] = f'attachment; filename="donation-certificate-{short_hash(tx_hash)}.pdf"'
        return response


# =============================================================================
# Transactions and withdrawals
# =============================================================================

class TransactionCreateView(APIView):
    """POST /api/transactions"""

    def post(self, request):
        record = get_services().store.record_transaction(request.data)
        return Response(dump(record), status=status.HTTP_201_CREATED)


class SenderTransactionsView(APIView):
    """GET /api/transactions/user/{wallet}"""

    def get(self, request, wallet):
        return Response(dump(get_services().store.transactions_by_sender(wallet)))


class TransactionStatusView(APIView):
    """PATCH /api/transactions/{txHash}/status"""

    def patch(self, request, tx_hash):
        data = validated(TransactionStatusSerializer(data=request.data))
        record = get_services().store.update_transaction_status(tx_hash, data["status"])
        return Response(dump(record))


class WithdrawalCreateView(APIView):
    """POST /api/withdrawals"""

    def post(self, request):
        record = get_services().store.record_withdrawal(request.data)
        return Response(dump(record), status=status.HTTP_201_CREATED)


class CharityWithdrawalsView(APIView):
    """GET /api/withdrawals/charity/{id}"""

    def get(self, request, charity_id):
        return Response(dump(get_services().store.withdrawals_by_charity(charity_id)))


# =============================================================================
# Campaigns
# =============================================================================

class CampaignCreateView(APIView):
    """POST /api/campaign - new campaigns are always ACTIVE."""

    def post(self, request):
        record = get_services().campaigns.create_campaign(request.data)
        return Response(dump(record), status=status.HTTP_201_CREATED)


class ActiveCampaignsView(APIView):
    """GET /api/campaign/active"""

    def get(self, request):
        return Response(dump(get_services().campaigns.active_campaigns()))


class WalletCampaignsView(APIView):
    """GET /api/campaign/{wallet}"""

    def get(self, request, wallet):
        return Response(dump(get_services().campaigns.campaigns_for_wallet(wallet)))


class CampaignCloseView(APIView):
    """POST /api/campaign/{id}/close"""

    def post(self, request, campaign_id):
        return Response(dump(get_services().campaigns.close_campaign(campaign_id)))


# =============================================================================
# Charity requests
# =============================================================================

class CharityRegisterView(APIView):
    """POST /api/charity/register (multipart form)."""

    def post(self, request):
        data = validated(CharityRegistrationSerializer(data=request.data))
        services = get_services()
        record = services.lifecycle.submit(
            {
                "name": data["name"],
                "wallet": data["wallet"],
                "description": data["description"],
                "email": data["email"],
                "websiteUrl": data.get("websiteUrl") or None,
            },
            verification_document=to_upload(data["verification"]),
            logo=to_upload(data.get("logo")),
        )
        return Response(charity_payload(record, services.storage), status=status.HTTP_201_CREATED)


class CharityRequestListView(APIView):
    """GET /api/charityRequests (optional ``?status=``)."""

    def get(self, request):
        services = get_services()
        records = services.lifecycle.list_requests(request.query_params.get("status"))
        return Response([charity_payload(record, services.storage) for record in records])


class CharityRequestDetailView(APIView):
    """GET and PUT /api/charityRequests/{id}"""

    def get(self, request, request_id):
        services = get_services()
        record = services.lifecycle.find(request_id)
        if record is None:
            return Response(
                {"error": "not_found", "detail": f"Charity request not found: {request_id}"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(charity_payload(record, services.storage))

    def put(self, request, request_id):
        data = validated(CharityUpdateSerializer(data=request.data))
        logo = to_upload(data.get("logo"))
        fields = {
            key: data[key]
            for key in ("name", "wallet", "description", "email", "websiteUrl")
            if key in data
        }

        services = get_services()
        record = services.lifecycle.update_details(
            request_id,
            fields,
            logo_changed=data["logoChanged"] or logo is not None,
            logo=logo,
        )
        return Response(charity_payload(record, services.storage))


class CharityApproveView(APIView):
    """POST /api/charityRequests/{id}/approve"""

    def post(self, request, request_id):
        services = get_services()
        record = services.lifecycle.approve(request_id)
        return Response(charity_payload(record, services.storage))


class CharityRejectView(APIView):
    """POST /api/charityRequests/{id}/reject"""

    def post(self, request, request_id):
        services = get_services()
        record = services.lifecycle.reject(request_id)
        return Response(charity_payload(record, services.storage))


class CharityAdminStatusView(APIView):
    """PATCH /api/charityRequests/adminapprove/{id}?status=APPROVED"""

    def patch(self, request, request_id):
        data = validated(AdminStatusSerializer(data=request.query_params))
        services = get_services()
        record = services.lifecycle.update_by_admin(request_id, data["status"])
        return Response(charity_payload(record, services.storage))


class CharityDeleteView(APIView):
    """DELETE /api/charityRequests/delete/{id}"""

    def delete(self, request, request_id):
        get_services().lifecycle.delete(request_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
