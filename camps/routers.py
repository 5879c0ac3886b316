"""
URL mappings for the MediCamp API.

Trailing slashes are omitted, matching the front-end client.  Every
route is named so tests and clients can ``reverse()`` it.
"""
from django.urls import include, path

from .auth_views import jwt_logout_view, jwt_refresh_view, login_view, me_update_view, me_view, signup_view
from .views import camps, health, payments, registrations


urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Authentication
    path('api/auth/register', signup_view, name='signup_view'),
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout_view'),
    # Profile
    path('api/users/me', me_view, name='me_view'),
    path('api/users/me/update', me_update_view, name='me_update_view'),
    # Camps
    path('api/camps', camps.camps_list, name='camps_list'),
    path('api/camps/popular', camps.popular_camps, name='popular_camps'),
    path('api/camps/upcoming', camps.upcoming_camps, name='upcoming_camps'),
    path('api/camps/mine', camps.my_camps, name='my_camps'),
    path('api/camps/<int:pk>', camps.camp_detail, name='camp_detail'),
    path('api/camps/<int:pk>/register', registrations.join_camp, name='join_camp'),
    # Registrations
    path('api/registrations/mine', registrations.my_registrations, name='my_registrations'),
    path('api/registrations/summary', registrations.participant_summary, name='participant_summary'),
    path('api/registrations/organizer', registrations.organizer_registrations, name='organizer_registrations'),
    path('api/registrations/<int:pk>/cancel', registrations.cancel_registration, name='cancel_registration'),
    path('api/registrations/<int:pk>/confirmation', registrations.update_confirmation, name='update_confirmation'),
    path('api/registrations/<int:pk>/payment', registrations.update_payment, name='update_payment'),
    # Payments
    path('api/payments/history', registrations.payment_history, name='payment_history'),
    path('api/payments/intent', payments.payment_intent, name='payment_intent'),
]
