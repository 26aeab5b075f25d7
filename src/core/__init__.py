"""Core: dominio, contratos y servicios del cliente del object mapper."""
