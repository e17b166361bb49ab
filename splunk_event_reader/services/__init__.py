from .reader import EventReaderService, create_reader_service, create_transport

__all__ = ["EventReaderService", "create_reader_service", "create_transport"]
