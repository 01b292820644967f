"""Static catalogs: KIE.AI services, HeyGen options, advertising styles."""
