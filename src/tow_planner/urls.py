from django.urls import path

from tow_planner import views

urlpatterns = [
    path("api/v1/health", views.health_view, name="health"),
    path("api/v1/geocode", views.geocode_view, name="geocode"),
    path("api/v1/geocode/suggest", views.suggest_view, name="geocode-suggest"),
    path("api/v1/geocode/reverse", views.reverse_geocode_view, name="geocode-reverse"),
    path("api/v1/route", views.route_view, name="route"),
    path("api/v1/fuel-price", views.fuel_price_view, name="fuel-price"),
    path("api/v1/mpg-estimate", views.mpg_estimate_view, name="mpg-estimate"),
    path("api/v1/trip-plan", views.trip_plan_view, name="trip-plan"),
    path("api/v1/trips", views.trips_view, name="trips"),
    path("api/v1/trips/stats", views.trip_stats_view, name="trip-stats"),
    path("api/v1/fuel-entries", views.fuel_entries_view, name="fuel-entries"),
    path("api/v1/fuel-entries/stats", views.fuel_stats_view, name="fuel-entry-stats"),
]
