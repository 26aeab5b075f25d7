"""Servicios asíncronos: cliente RPC, gateway del mapper y resolver de asociaciones."""
