"""Barbershop appointment booking API"""
