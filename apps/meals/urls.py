from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'meals'

router = DefaultRouter()
router.register(r'cancellations', views.MealCancellationViewSet, basename='cancellation')

urlpatterns = [
    # Cancellation ViewSet routes
    # GET    /api/meals/cancellations/       - List cancellations
    # POST   /api/meals/cancellations/       - Cancel a meal
    # GET    /api/meals/cancellations/{id}/  - Get a cancellation
    # DELETE /api/meals/cancellations/{id}/  - Undo a cancellation

    # Settlements (head teacher / admin)
    path('settlements/', views.settlements, name='settlements'),
    path('settlements/batch/', views.process_refund_batch, name='settlements-batch'),

    path('', include(router.urls)),
]
