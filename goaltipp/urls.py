from django.contrib import admin
from django.http import HttpResponse
from django.urls import include, path

from .views import health


def robots_txt(request):
    """Serve robots.txt to keep the prediction game out of search indexes."""
    content = """User-agent: *
Disallow: /"""
    return HttpResponse(content, content_type='text/plain')


urlpatterns = [
    path('admin/', admin.site.urls),
    path('health/', health, name='health'),
    path('robots.txt', robots_txt, name='robots_txt'),
    path('api/', include('goaltipp.predictions.urls', namespace='predictions')),
]
