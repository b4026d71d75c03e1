# tenders/admin.py

from django.contrib import admin
from .models import Tender, Bid, TenderInvitation, Comment


@admin.register(Tender)
class TenderAdmin(admin.ModelAdmin):
    list_display = ['tender_number', 'title', 'created_by', 'category',
                    'base_price', 'deadline', 'status', 'created_at']
    list_filter = ['status', 'category', 'created_at']
    search_fields = ['tender_number', 'title', 'created_by__username']
    # Lifecycle fields move only through the workflow
    readonly_fields = ['tender_number', 'status', 'awarded_bid', 'version', 'created_at', 'updated_at']


@admin.register(Bid)
class BidAdmin(admin.ModelAdmin):
    list_display = ['tender', 'vendor', 'amount', 'currency', 'status', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['tender__tender_number', 'vendor__username']
    readonly_fields = ['status', 'created_at', 'updated_at']

    def get_readonly_fields(self, request, obj=None):
        # Accepted, rejected and withdrawn bids are frozen
        if obj is not None and not obj.is_active:
            return [field.name for field in obj._meta.fields]
        return super().get_readonly_fields(request, obj)


@admin.register(TenderInvitation)
class TenderInvitationAdmin(admin.ModelAdmin):
    list_display = ['tender', 'vendor', 'invited_by', 'created_at']
    search_fields = ['tender__tender_number', 'vendor__username']


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ['tender', 'author', 'created_at']
    search_fields = ['tender__tender_number', 'author__username', 'content']
