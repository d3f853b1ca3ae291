"""
Site Audit Orchestration Engine

Система аудита живого сайта по домену:
- Топология HTTP/HTTPS × www/non-www, редиректы, CDN
- robots.txt
- Аналитика, трекеры и cookie consent
- SSL и заголовки безопасности
- Meta/SEO разметка
- Копирайт, веб-шрифты, ссылки на соцсети
- Изображения (alt, размеры, lazy loading)

Usage:
    python -m siteaudit.main example.com --all
"""

__version__ = "1.0.0"
