from django.urls import path
from . import views

app_name = 'content'

urlpatterns = [
    path('games/', views.games_list, name='games'),
    path('games/<str:game_id>/', views.game_detail, name='game_detail'),
    path('featured-games/', views.featured_games, name='featured_games'),
    path('ads/', views.ads_list, name='ads'),
    path('health/', views.health, name='health'),
    path('admin/seo-settings/', views.admin_seo_settings, name='admin_seo_settings'),
    path('admin/storage-status/', views.admin_storage_status, name='admin_storage_status'),
    path('admin/cache/clear/', views.admin_clear_cache, name='admin_clear_cache'),
]
