from django.http import JsonResponse
from django.urls import path, include


def health_check(request):
    return JsonResponse({
        'status': 200,
        'data': "OK!"
    })


urlpatterns = [
    path('health/', health_check),
    path('api/', include('ai.urls')),
    path('api/', include('orders.urls')),
]
