"""HTTP command surface — forwards validated requests to the monitor."""
