class AppError(Exception):
    """Base class for all application-level errors."""
    pass


class DomainError(AppError):
    """Base for domain logic errors."""
    pass

class MonitorNotFoundError(DomainError):
    def __init__(self, monitor_id: int):
        self.monitor_id = monitor_id
        self.message = f"Integration monitor '{monitor_id}' not found."
        super().__init__(self.message)

class InvalidServiceTypeError(DomainError):
    def __init__(self, service_type: str):
        self.service_type = service_type
        self.message = f"Invalid service type '{service_type}'."
        super().__init__(self.message)

class InvalidEndpointError(DomainError):
    def __init__(self, endpoint: str):
        self.message = f"The endpoint '{endpoint}' is not a valid http(s) URL."
        super().__init__(self.message)



class InfrastructureError(AppError):
    """Base for infrastructure-related errors (DB, API, etc)."""
    pass

class DatabaseConnectionError(InfrastructureError):
    def __init__(self, db_name: str):
        self.message = f"Could not connect to database '{db_name}'"
        super().__init__(self.message)
