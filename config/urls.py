"""
URL configuration for task_reminders project.
"""

from django.contrib import admin
from django.urls import path, include
from django.conf import settings

urlpatterns = [
    path('admin/', admin.site.urls),

    # App URLs
    path('notifications/', include('apps.notifications.urls', namespace='notifications')),
]

if settings.DEBUG and 'debug_toolbar' in settings.INSTALLED_APPS:
    import debug_toolbar
    urlpatterns = [
        path('__debug__/', include(debug_toolbar.urls)),
    ] + urlpatterns

# Admin site customization
admin.site.site_header = 'Listed Administration'
admin.site.site_title = 'Listed Admin'
admin.site.index_title = 'Tasks, users and reminder queue'
