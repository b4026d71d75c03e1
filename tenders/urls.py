# tenders/urls.py

from django.urls import path
from .views import (
    TenderListCreateView, TenderDetailView, PublishTenderView, AwardTenderView,
    InviteVendorsView, TenderBidsView, TenderCommentsView, CommentDetailView,
    BidListCreateView, BidDetailView,
)

urlpatterns = [
    # Tender endpoints
    path('tenders/', TenderListCreateView.as_view(), name='tender-list-create'),
    path('tenders/<int:pk>/', TenderDetailView.as_view(), name='tender-detail'),
    path('tenders/<int:pk>/publish/', PublishTenderView.as_view(), name='tender-publish'),
    path('tenders/<int:pk>/award/', AwardTenderView.as_view(), name='tender-award'),
    path('tenders/<int:pk>/invite/', InviteVendorsView.as_view(), name='tender-invite'),
    path('tenders/<int:tender_id>/bids/', TenderBidsView.as_view(), name='tender-bids'),
    path('tenders/<int:tender_id>/comments/', TenderCommentsView.as_view(), name='tender-comments'),

    # Comment endpoints
    path('comments/<int:pk>/', CommentDetailView.as_view(), name='comment-detail'),

    # Bid endpoints
    path('bids/', BidListCreateView.as_view(), name='bid-list-create'),
    path('bids/<int:pk>/', BidDetailView.as_view(), name='bid-detail'),
]
