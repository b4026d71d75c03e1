from django.urls import path
from . import views

urlpatterns = [
    path('',               views.NotificationListView.as_view(),   name='notification-list'),
    path('unread-count/',  views.UnreadCountView.as_view(),        name='notification-unread-count'),
    path('stats/',         views.NotificationStatsView.as_view(),  name='notification-stats'),
    path('read-all/',      views.MarkAllReadView.as_view(),        name='notification-read-all'),
    path('read/',          views.DeleteReadView.as_view(),         name='notification-delete-read'),
    path('<int:pk>/',      views.NotificationDeleteView.as_view(), name='notification-delete'),
    path('<int:pk>/read/', views.MarkReadView.as_view(),           name='notification-read'),
]
