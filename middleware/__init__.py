"""HTTP middleware for the ATA SMART exporter"""
