"""
Django management command to check the cache that memoises backend reads.

Usage:
    python manage.py check_cache
"""
from django.core.management.base import BaseCommand
from django.core.cache import cache
from django.conf import settings

from ricetrade.core.cache_utils import get_generation, invalidate_backend_reads


class Command(BaseCommand):
    help = 'Check cache configuration and read invalidation'

    def handle(self, *args, **options):
        self.stdout.write("=" * 60)
        self.stdout.write(self.style.SUCCESS("Cache Configuration Check"))
        self.stdout.write("=" * 60)

        self.stdout.write(f"\n1. Cache Backend: {settings.CACHES['default']['BACKEND']}")
        self.stdout.write(f"2. Cache Location: {settings.CACHES['default'].get('LOCATION', 'N/A')}")
        self.stdout.write(f"3. Backend read TTL: {settings.TRADING_API_CACHE_TTL}s")

        self.stdout.write("\n4. Cache Operations:")
        self.stdout.write("-" * 60)

        try:
            cache.set('check_cache:key', 'value', 60)
            value = cache.get('check_cache:key')
            if value == 'value':
                self.stdout.write(self.style.SUCCESS("Cache SET/GET: OK"))
            else:
                self.stdout.write(self.style.ERROR(f"Cache GET: Failed (got: {value})"))

            cache.delete('check_cache:key')
            if cache.get('check_cache:key') is None:
                self.stdout.write(self.style.SUCCESS("Cache DELETE: OK"))
            else:
                self.stdout.write(self.style.ERROR("Cache DELETE: Failed"))

            before = get_generation()
            invalidate_backend_reads()
            after = get_generation()
            if after > before:
                self.stdout.write(self.style.SUCCESS(f"Read invalidation: OK (generation {before} -> {after})"))
            else:
                self.stdout.write(self.style.ERROR(f"Read invalidation: Failed (generation stayed {before})"))

            self.stdout.write("\n" + "=" * 60)
            self.stdout.write(self.style.SUCCESS("Cache is working"))
            self.stdout.write("=" * 60)

        except Exception as e:
            self.stdout.write(self.style.ERROR(f"ERROR: {str(e)}"))
            self.stdout.write(self.style.WARNING("\nTroubleshooting:"))
            self.stdout.write("   1. Check REDIS_URL in .env file")
            self.stdout.write("   2. Verify django-redis is installed: pip install django-redis")
            self.stdout.write("   3. Test Redis connection from your server")
            raise
