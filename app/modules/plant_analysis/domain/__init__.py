"""
Plant Analysis Domain Layer

Domain Models:
- AnalysisRequest, SpeciesHypothesis, CatalogRecord, HealthFinding, CarePlan,
  UsageLedgerEntry, AnalysisResult and the rejection payloads

Domain Services:
- ImageQualityGate, SpeciesIdentifier, CatalogEnricher, HealthAssessor,
  CarePlanSynthesizer, UsageLedger

Repository Interfaces:
- UsageLedgerRepository, ResultStore, BillingGateway
"""
