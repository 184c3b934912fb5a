from django.urls import path
from . import views

app_name = 'core'

# Page paths carry no trailing slash so they match the URLs in the
# structured data and canonical links.
urlpatterns = [
    path('', views.home, name='home'),
    path('games', views.all_games, name='games'),
    path('game/<str:game_id>', views.game_page, name='game'),
    path('new-games', views.new_games, name='new_games'),
    path('category/<str:category>', views.category_page, name='category'),
    path('search', views.search, name='search'),
    path('about', views.about_page, name='about'),
]
