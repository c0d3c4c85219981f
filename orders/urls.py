from django.urls import path
from orders.views import OrderDeleteView, OrderListView, OrderUpdateView, OrderUploadView

urlpatterns = [
    path('orders', OrderListView.as_view()),
    path('upload', OrderUploadView.as_view()),
    path('order/update', OrderUpdateView.as_view()),
    path('order/delete', OrderDeleteView.as_view()),
]
