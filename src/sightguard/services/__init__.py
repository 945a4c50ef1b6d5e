"""HTTP clients for the Sightengine and reverse image search APIs."""
