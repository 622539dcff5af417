"""Routes package for the WIRsuchen API."""


def register_routes(app):
    """Register all route blueprints with the application."""
    from .offers import jobs_bp, deals_bp
    from .blog import blog_bp
    from .translations import translations_bp, translate_bp

    app.register_blueprint(jobs_bp, url_prefix='/api/jobs')
    app.register_blueprint(deals_bp, url_prefix='/api/deals')
    app.register_blueprint(blog_bp, url_prefix='/api/blog')
    app.register_blueprint(translations_bp, url_prefix='/api/translations')
    app.register_blueprint(translate_bp, url_prefix='/api/translate')
