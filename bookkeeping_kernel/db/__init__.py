"""SQLAlchemy persistence for the business document."""
