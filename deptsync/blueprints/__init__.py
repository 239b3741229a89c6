"""
Department Dependency Engine
Blueprint registry.
"""


def register_blueprints(app):
    from deptsync.blueprints.dependencies_bp import dependencies_bp
    from deptsync.blueprints.health_bp import health_bp

    app.register_blueprint(dependencies_bp)
    app.register_blueprint(health_bp)
