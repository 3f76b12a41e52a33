from django.urls import path

from . import views

app_name = 'predictions'

urlpatterns = [
    path('matches/', views.match_list, name='match_list'),
    path('matches/visible/', views.visible_match_list, name='visible_match_list'),
    path('matches/upcoming/', views.upcoming_match_list, name='upcoming_match_list'),
    path('matches/team/<int:team_id>/', views.team_match_list, name='team_match_list'),
    path('matches/<int:match_id>/', views.match_detail, name='match_detail'),
    path('matches/<int:match_id>/can-predict/', views.match_can_predict, name='match_can_predict'),
    path('matches/<int:match_id>/result/', views.set_match_result, name='set_match_result'),
    path('predictions/', views.predictions, name='predictions'),
    path('predictions/match/<int:match_id>/', views.match_predictions, name='match_predictions'),
    path('tournaments/', views.tournament_list, name='tournament_list'),
    path('tournaments/active/', views.active_tournament_list, name='active_tournament_list'),
    path('tournaments/<int:tournament_id>/', views.tournament_detail, name='tournament_detail'),
    path('tournaments/<int:tournament_id>/players/', views.tournament_players, name='tournament_players'),
    path('tournaments/<int:tournament_id>/started/', views.tournament_started_view, name='tournament_started'),
    path(
        'tournaments/<int:tournament_id>/winner-prediction/',
        views.winner_prediction,
        name='winner_prediction',
    ),
    path(
        'tournaments/<int:tournament_id>/award-prediction/',
        views.award_prediction,
        name='award_prediction',
    ),
    path('tournaments/<int:tournament_id>/winner/', views.declare_winner, name='declare_winner'),
    path('tournaments/<int:tournament_id>/awards/', views.tournament_awards, name='tournament_awards'),
    path('admin/scoring-rules/', views.scoring_rules, name='scoring_rules'),
    path('leaderboard/', views.leaderboard, name='leaderboard'),
    path('leaderboard/user/<int:user_id>/', views.user_predictions, name='user_predictions'),
]
