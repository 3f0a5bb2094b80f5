"""API URL configuration."""

from django.urls import include, path

from chainheart.api.stats_views import DonorLeaderboardView, PlatformStatsView
from chainheart.api.views import (
    ActiveCampaignsView,
    CampaignCloseView,
    CampaignCreateView,
    CampaignDonationsView,
    CharityAdminStatusView,
    CharityApproveView,
    CharityDeleteView,
    CharityDonationsView,
    CharityRegisterView,
    CharityRejectView,
    CharityRequestDetailView,
    CharityRequestListView,
    CharityWithdrawalsView,
    DonationCertificateView,
    DonationCreateView,
    DonationExportView,
    DonationReceiptView,
    DonorDonationsView,
    SenderTransactionsView,
    TransactionCreateView,
    TransactionStatusView,
    WalletCampaignsView,
    WithdrawalCreateView,
)

api_patterns = [
    # Donations
    path('donations', DonationCreateView.as_view(), name='donation-create'),
    path('donations/user/<str:wallet>', DonorDonationsView.as_view(), name='donations-by-donor'),
    path('donations/charity/<int:charity_id>', CharityDonationsView.as_view(), name='donations-by-charity'),
    path('donations/campaign/<int:campaign_id>', CampaignDonationsView.as_view(), name='donations-by-campaign'),
    path('donations/receipt/<str:tx_hash>', DonationReceiptView.as_view(), name='donation-receipt'),
    path('donations/export/<str:wallet>', DonationExportView.as_view(), name='donation-export'),
    path('donations/certificate/<str:tx_hash>', DonationCertificateView.as_view(), name='donation-certificate'),

    # Transactions and withdrawals
    path('transactions', TransactionCreateView.as_view(), name='transaction-create'),
    path('transactions/user/<str:wallet>', SenderTransactionsView.as_view(), name='transactions-by-sender'),
    path('transactions/<str:tx_hash>/status', TransactionStatusView.as_view(), name='transaction-status'),
    path('withdrawals', WithdrawalCreateView.as_view(), name='withdrawal-create'),
    path('withdrawals/charity/<int:charity_id>', CharityWithdrawalsView.as_view(), name='withdrawals-by-charity'),

    # Statistics endpoints
    path('statistics', PlatformStatsView.as_view(), name='platform-stats'),
    path('statistics/leaderboard', DonorLeaderboardView.as_view(), name='donor-leaderboard'),

    # Campaigns ("active" must precede the wallet pattern)
    path('campaign', CampaignCreateView.as_view(), name='campaign-create'),
    path('campaign/active', ActiveCampaignsView.as_view(), name='campaigns-active'),
    path('campaign/<int:campaign_id>/close', CampaignCloseView.as_view(), name='campaign-close'),
    path('campaign/<str:wallet>', WalletCampaignsView.as_view(), name='campaigns-by-wallet'),

    # Charity requests
    path('charity/register', CharityRegisterView.as_view(), name='charity-register'),
    path('charityRequests', CharityRequestListView.as_view(), name='charity-requests'),
    path('charityRequests/adminapprove/<int:request_id>', CharityAdminStatusView.as_view(), name='charity-admin-status'),
    path('charityRequests/delete/<int:request_id>', CharityDeleteView.as_view(), name='charity-delete'),
    path('charityRequests/<int:request_id>', CharityRequestDetailView.as_view(), name='charity-request-detail'),
    path('charityRequests/<int:request_id>/approve', CharityApproveView.as_view(), name='charity-approve'),
    path('charityRequests/<int:request_id>/reject', CharityRejectView.as_view(), name='charity-reject'),
]

urlpatterns = [
    path('api/', include(api_patterns)),
]
