from panelplot.cli import main


raise SystemExit(main())
